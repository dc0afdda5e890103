from unittest.mock import Mock

import pytest

from voicemail_pipeline import main, publisher
from voicemail_pipeline.config import Settings
from voicemail_pipeline.models import TranscriptAlternative


class FakeGateway:
    def transcribe(self, container):
        return [TranscriptAlternative("お名前とご用件をお話しください", 0.92, 3)]


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path / "data"), output_dir=str(tmp_path / "output"), output_bucket="bkt")


@pytest.fixture
def client(settings):
    app = main.create_app(settings, FakeGateway())
    return app.test_client()


def write_capture(folder, item_id):
    folder.mkdir(parents=True, exist_ok=True)
    (folder / f"{item_id}_data").write_bytes(b"\x00\x01" * 80)
    (folder / f"{item_id}_timeSize").write_text("0/160")


def test_batch_endpoint_exports_and_publishes(monkeypatch, tmp_path, client):
    write_capture(tmp_path / "data", "1751421215833")
    publish = Mock(return_value=["results/data/data-results.csv"])
    monkeypatch.setattr(publisher, "publish_outputs", publish)

    rv = client.post("/batch", json={"folder": str(tmp_path / "data")})

    assert rv.status_code == 200
    body = rv.get_json()
    assert body["success_count"] == 1
    assert body["detection_count"] == 1
    assert body["item_results"][0]["detected"] is True
    assert (tmp_path / "output" / "data" / "data-results.csv").exists()
    assert body["exports"]["uploaded"] == ["results/data/data-results.csv"]
    paths, bucket, prefix = publish.call_args[0]
    assert bucket == "bkt"
    assert prefix == "results/data/"
    assert len(paths) == 2


def test_batch_endpoint_requires_folder(client):
    assert client.post("/batch", json={}).status_code == 400


def test_batch_endpoint_empty_folder(tmp_path, client):
    (tmp_path / "empty").mkdir()
    rv = client.post("/batch", json={"folder": str(tmp_path / "empty")})
    assert rv.status_code == 404
    assert "No audio files found" in rv.get_json()["error"]


def test_reconstruct_and_transcribe_endpoints(tmp_path, client):
    write_capture(tmp_path / "data", "7")

    rv = client.post("/reconstruct", json={"id": "7"})
    assert rv.status_code == 200
    assert rv.get_json()["container_info"]["total_size"] == 204

    rv = client.post("/transcribe", json={"id": "7"})
    assert rv.status_code == 200
    assert rv.get_json()["best_transcript"] == "お名前とご用件をお話しください"
    assert (tmp_path / "output" / "7.txt").exists()


def test_reconstruct_missing_item(client):
    rv = client.post("/reconstruct", json={"id": "nope"})
    assert rv.status_code == 422


def test_classify_endpoint(client):
    assert client.post("/classify", json={"transcript": "Leave a message"}).get_json() == {"detected": True}
    assert client.post("/classify", json={}).get_json() == {"detected": False}
