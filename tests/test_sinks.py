import os
import tempfile
import unittest
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sinks.base import EmptyInputError
from sinks.disk_sink import DiskSink, InvalidFilenameError, WriteError
from sinks.download_sink import HttpDownloadSink, content_disposition


class TestDiskSink(unittest.TestCase):
    def test_writes_into_output_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            sink = DiskSink(output_dir=os.path.join(tmp, "chunks"))

            path = sink.deliver(b"RIFFdata", "nested/name.wav")

            self.assertEqual(path, os.path.join(tmp, "chunks", "name.wav"))
            self.assertEqual(sink.last_path, path)
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"RIFFdata")

    def test_filename_is_a_path_without_output_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = os.path.join(tmp, "chunk.wav")
            self.assertEqual(DiskSink().deliver(b"abc", target), target)
            self.assertTrue(os.path.exists(target))

    def test_empty_input_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            sink = DiskSink(output_dir=tmp)
            with self.assertRaises(EmptyInputError):
                sink.deliver(b"", "empty.wav")
            self.assertEqual(os.listdir(tmp), [])

    def test_unwritable_target_raises_write_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = os.path.join(tmp, "not_a_dir")
            with open(blocker, "wb") as f:
                f.write(b"x")

            with self.assertRaises(WriteError):
                DiskSink().deliver(b"abc", os.path.join(blocker, "chunk.wav"))

    def test_dot_names_rejected_before_writing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            sink = DiskSink(output_dir=tmp)
            for name in ("..", ".", "", "nested/", "nested/..", "   "):
                with self.subTest(name=name):
                    with self.assertRaises(InvalidFilenameError):
                        sink.deliver(b"abc", name)
            self.assertEqual(os.listdir(tmp), [])

        with self.assertRaises(InvalidFilenameError):
            DiskSink().deliver(b"abc", "..")


class TestHttpDownloadSink(unittest.TestCase):
    def test_builds_forced_download_response(self) -> None:
        sink = HttpDownloadSink()

        self.assertIsNone(sink.deliver(b"RIFF1234WAVE", "some/dir/clip-0-1000.wav"))

        response = sink.response
        assert response is not None
        self.assertEqual(response.body, b"RIFF1234WAVE")
        self.assertEqual(response.headers["content-type"], "audio/x-wav")
        self.assertEqual(
            response.headers["content-disposition"],
            'attachment; filename="clip-0-1000.wav"',
        )
        self.assertEqual(response.headers["content-length"], "12")
        self.assertEqual(response.headers["content-transfer-encoding"], "binary")
        self.assertEqual(response.headers["expires"], "Fri, 06 Nov 1987 12:00:00 GMT")

    def test_quotes_in_filename_are_escaped(self) -> None:
        disposition = content_disposition('say "hi".wav')

        self.assertEqual(
            disposition,
            "attachment; filename=\"say _hi_.wav\"; filename*=UTF-8''say%20%22hi%22.wav",
        )
        self.assertEqual(disposition.count('"'), 2)

    def test_non_ascii_filename_keeps_exact_name_in_extended_form(self) -> None:
        sink = HttpDownloadSink()
        sink.deliver(b"RIFF", "d\u00e9j\u00e0.wav")

        response = sink.response
        assert response is not None
        self.assertEqual(
            response.headers["content-disposition"],
            "attachment; filename=\"d_j_.wav\"; filename*=UTF-8''d%C3%A9j%C3%A0.wav",
        )

    def test_empty_input_rejected(self) -> None:
        sink = HttpDownloadSink()
        with self.assertRaises(EmptyInputError):
            sink.deliver(b"", "clip.wav")
        self.assertIsNone(sink.response)


if __name__ == "__main__":
    unittest.main()
