import os
import tempfile
import unittest
from pathlib import Path
import sys

from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for path in (ROOT_DIR, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from backend.main import app
from backend.services.extraction_manager import ExtractionManager
from extraction.memory_probe import StaticMemoryProbe
from wav_fixtures import header_sizes, payload_for, write_wav


class TestExtractionApi(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.media_dir = os.path.join(self._tmp.name, "media")
        self.output_dir = os.path.join(self._tmp.name, "chunks")
        write_wav(
            os.path.join(self.media_dir, "tone.wav"),
            payload_for(10, 44100, 1, 16),
            sample_rate=44100,
            channels=1,
            bits=16,
        )
        self._set_manager(StaticMemoryProbe(limit=1 << 40))
        # no context manager: the lifespan would replace the manager with the configured one
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _set_manager(self, probe: StaticMemoryProbe) -> None:
        app.state.extraction_manager = ExtractionManager(
            media_dir=self.media_dir,
            output_dir=self.output_dir,
            memory_probe=probe,
            default_destination="return_bytes",
        )

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/api/health").json(), {"ok": True})

    def test_wav_info(self) -> None:
        response = self.client.get("/api/wav/info", params={"path": "tone.wav"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["sample_rate"], 44100)
        self.assertEqual(body["byte_rate"], 88200)
        self.assertEqual(body["headers_size"], 44)
        self.assertEqual(body["duration_ms"], 10000)

    def test_browser_download(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 1000, "destination": "browser"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "audio/x-wav")
        self.assertEqual(response.headers["content-disposition"], 'attachment; filename="tone-0-1000.wav"')
        self.assertEqual(len(response.content), 88244)
        self.assertEqual(header_sizes(response.content), (88236, 88200))

    def test_default_destination_returns_bytes(self) -> None:
        response = self.client.post("/api/extract", json={"path": "tone.wav", "start_ms": 0, "end_ms": 500})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-chunk-filename"], "tone-0-500.wav")
        self.assertEqual(len(response.content), 44 + 44100)

    def test_disk_destination(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 500, "destination": 2, "filename": "cut.wav"},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["destination"], "DISK")
        self.assertEqual(body["written_path"], os.path.join(self.output_dir, "cut.wav"))
        self.assertEqual(os.path.getsize(body["written_path"]), body["output_size"])

    def test_disk_and_return(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 500, "destination": 4},
        )

        self.assertEqual(response.status_code, 200)
        written = response.headers["x-written-path"]
        with open(written, "rb") as f:
            self.assertEqual(f.read(), response.content)

    def test_invalid_range(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 5000, "end_ms": 20000, "destination": 2},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_RANGE")
        self.assertFalse(os.path.exists(self.output_dir))

    def test_negative_start_is_an_invalid_range(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": -5, "end_ms": 500, "destination": 3},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_RANGE")

    def test_dot_filename_rejected_for_disk(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 500, "destination": 2, "filename": ".."},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_FILENAME")

    def test_invalid_destination(self) -> None:
        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 500, "destination": 9},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_DESTINATION")

    def test_path_outside_media_dir(self) -> None:
        response = self.client.get("/api/wav/info", params={"path": "../media/../../etc/passwd"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_PATH")

    def test_missing_file(self) -> None:
        response = self.client.get("/api/wav/info", params={"path": "absent.wav"})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["code"], "NOT_FOUND")

    def test_not_a_wav(self) -> None:
        with open(os.path.join(self.media_dir, "notes.wav"), "wb") as f:
            f.write(b"hello, not audio at all")

        response = self.client.get("/api/wav/info", params={"path": "notes.wav"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["code"], "INVALID_WAV")

    def test_insufficient_memory(self) -> None:
        self._set_manager(StaticMemoryProbe(limit=1000, usage=0))

        response = self.client.post(
            "/api/extract",
            json={"path": "tone.wav", "start_ms": 0, "end_ms": 1000, "destination": "return_bytes"},
        )

        self.assertEqual(response.status_code, 507)
        self.assertEqual(response.json()["detail"]["code"], "INSUFFICIENT_MEMORY")


if __name__ == "__main__":
    unittest.main()
