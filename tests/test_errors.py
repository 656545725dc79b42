import unittest

from podcraft.core.errors import (
    ConfigurationError, PodcraftError, ProcessingError, ValidationError
)


class TestErrors(unittest.TestCase):
    def test_hierarchy(self):
        for error in (
            ConfigurationError("missing", capability="ffmpeg"),
            ProcessingError("ffmpeg", "failed"),
            ValidationError("response", "bad"),
        ):
            self.assertIsInstance(error, PodcraftError)
            self.assertFalse(error.retryable)

    def test_configuration_error_names_capability(self):
        data = ConfigurationError("ffmpeg not found", capability="ffmpeg").to_dict()
        self.assertEqual(data["name"], "ConfigurationError")
        self.assertEqual(data["capability"], "ffmpeg")
        self.assertEqual(data["message"], "ffmpeg not found")
        self.assertIn("timestamp", data)

    def test_processing_error_details(self):
        error = ProcessingError("ffprobe", "failed with exit code 1", returncode=1, stderr_tail="boom")
        self.assertEqual(str(error), "ffprobe: failed with exit code 1")
        data = error.to_dict()
        self.assertEqual(data["returncode"], 1)
        self.assertEqual(data["stderr_tail"], "boom")

    def test_validation_error_message(self):
        error = ValidationError("audio_data", "too small", value=b"\x00" * 10)
        self.assertEqual(str(error), "Validation failed for 'audio_data': too small")
        self.assertIsNone(error.to_dict()["value"])
        self.assertEqual(ValidationError("model", "unknown", value="x").to_dict()["value"], "x")


if __name__ == '__main__':
    unittest.main()
