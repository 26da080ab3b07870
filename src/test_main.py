from unittest.mock import patch

from fastapi.testclient import TestClient

import main
from config import HOST, PORT

client = TestClient(main.app)


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Workout Tracker Server"}


def test_serve_runs_app_with_uvicorn():
    with patch("main.uvicorn.run") as run:
        main.serve()
    run.assert_called_once_with(main.app, host=HOST, port=PORT, log_config=None)
