import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from podcraft.audio import ffmpeg
from podcraft.core.errors import ConfigurationError, ProcessingError


def completed(returncode=0, stdout="", stderr=""):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestToolDetection(unittest.TestCase):
    @patch("podcraft.audio.ffmpeg.shutil.which")
    def test_available(self, mock_which):
        mock_which.return_value = "/usr/bin/tool"
        self.assertTrue(ffmpeg.is_ffmpeg_available())
        ffmpeg.require_ffmpeg()

    @patch("podcraft.audio.ffmpeg.shutil.which")
    def test_missing_ffprobe_is_named(self, mock_which):
        mock_which.side_effect = lambda name: None if name == "ffprobe" else f"/usr/bin/{name}"

        self.assertFalse(ffmpeg.is_ffmpeg_available())
        with self.assertRaises(ConfigurationError) as context:
            ffmpeg.require_ffmpeg()

        self.assertEqual(context.exception.capability, "ffprobe")
        self.assertIn("ffprobe", str(context.exception))


class TestProbeDuration(unittest.TestCase):
    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_reads_duration(self, mock_run):
        mock_run.return_value = completed(stdout='{"format": {"duration": "3601.25"}}')

        self.assertEqual(ffmpeg.probe_duration(Path("/tmp/input.mp3")), 3601.25)

        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd[0], "ffprobe")
        self.assertIn("format=duration", cmd)
        self.assertEqual(cmd[-1], "/tmp/input.mp3")

    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_nonzero_exit_keeps_stderr_tail(self, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="x" * 4000 + "moov atom not found")

        with self.assertRaises(ProcessingError) as context:
            ffmpeg.probe_duration(Path("/tmp/input.mp3"))

        error = context.exception
        self.assertEqual(error.returncode, 1)
        self.assertEqual(len(error.stderr_tail), 1000)
        self.assertTrue(error.stderr_tail.endswith("moov atom not found"))
        self.assertEqual(error.tool, "ffprobe")

    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_unparseable_output(self, mock_run):
        for stdout in ("not json", "{}", '{"format": {"duration": "N/A"}}', '{"format": {"duration": "0"}}',
                       '{"format": {"duration": "nan"}}', '{"format": {"duration": "inf"}}'):
            mock_run.return_value = completed(stdout=stdout)
            with self.assertRaises(ProcessingError):
                ffmpeg.probe_duration(Path("/tmp/input.mp3"))

    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_binary_disappeared(self, mock_run):
        mock_run.side_effect = FileNotFoundError("ffprobe")

        with self.assertRaises(ConfigurationError):
            ffmpeg.probe_duration(Path("/tmp/input.mp3"), ffprobe="ffprobe")


class TestSplitByTime(unittest.TestCase):
    def setUp(self):
        self.output_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.output_dir)

    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_returns_segments_in_order(self, mock_run):
        for name in ("chunk_002.mp3", "chunk_000.mp3", "chunk_001.mp3", "input.mp3", "chunk_000.wav"):
            (self.output_dir / name).write_bytes(b"x")
        mock_run.return_value = completed()

        paths = ffmpeg.split_by_time(Path("/tmp/input.mp3"), self.output_dir, "mp3", 600)

        self.assertEqual([p.name for p in paths], ["chunk_000.mp3", "chunk_001.mp3", "chunk_002.mp3"])

        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd[0], "ffmpeg")
        self.assertEqual(cmd[cmd.index("-segment_time") + 1], "600")
        self.assertEqual(cmd[cmd.index("-c") + 1], "copy")
        self.assertEqual(cmd[cmd.index("-reset_timestamps") + 1], "1")
        self.assertIn("-y", cmd)
        self.assertEqual(cmd[-1], str(self.output_dir / "chunk_%03d.mp3"))

    @patch("podcraft.audio.ffmpeg.subprocess.run")
    def test_failure(self, mock_run):
        mock_run.return_value = completed(returncode=183, stderr="Invalid data found when processing input")

        with self.assertRaises(ProcessingError) as context:
            ffmpeg.split_by_time(Path("/tmp/input.mp3"), self.output_dir, "mp3", 600)

        self.assertEqual(context.exception.returncode, 183)
        self.assertIn("Invalid data", context.exception.stderr_tail)


if __name__ == '__main__':
    unittest.main()
