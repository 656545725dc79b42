import unittest
from unittest.mock import MagicMock

from podcraft.audio.transcription import (
    ChunkedTranscriber, calculate_transcription_cost, estimate_transcription_cost,
    get_audio_requirements, merge_chunk_results, transcribe_large_audio, validate_audio_file
)
from podcraft.audio.chunking import AudioSplitter
from podcraft.core.models import AudioConfig
from podcraft.core.errors import ProcessingError, ValidationError
from podcraft.core.providers import TranscriptionProvider, as_transcribe_fn
from podcraft.models import AudioChunk, ChunkTranscriptionResult, SplitResult

AUDIO = b"a" * 5000


def chunked_result(count):
    chunks = [AudioChunk(buffer=f"chunk-{i}".encode(), filename=f"ep_chunk{i + 1}.mp3", index=i)
              for i in range(count)]
    return SplitResult(chunked=True, chunks=chunks, original_size=30_000_000, audio_duration_seconds=3600.0)


class EchoProvider(TranscriptionProvider):
    @property
    def name(self):
        return "echo"

    def transcribe(self, audio, options=None):
        return {"transcript": audio.decode(), "estimated_cost": 0.5}


class TestMerge(unittest.TestCase):
    def test_merges_by_index_regardless_of_arrival(self):
        results = [
            ChunkTranscriptionResult(index=2, transcript="third"),
            ChunkTranscriptionResult(index=0, transcript="first"),
            ChunkTranscriptionResult(index=1, transcript="second"),
        ]
        self.assertEqual(merge_chunk_results(results), "first\n\nsecond\n\nthird")


class TestChunkedTranscriber(unittest.TestCase):
    def setUp(self):
        self.splitter = MagicMock()
        self.transcribe_fn = MagicMock()

    def test_small_file_delegates_directly(self):
        self.splitter.split_if_needed.return_value = SplitResult(
            chunked=False, chunks=[AudioChunk(buffer=AUDIO, filename="ep.mp3", index=0)], original_size=len(AUDIO)
        )
        self.transcribe_fn.return_value = {"transcript": "hello", "estimated_cost": 0.01}

        result = ChunkedTranscriber(self.transcribe_fn, self.splitter).transcribe_large(
            AUDIO, "ep.mp3", {"language": "en"}
        )

        self.assertEqual(result, {"transcript": "hello", "estimated_cost": 0.01})
        self.transcribe_fn.assert_called_once_with(AUDIO, {"language": "en", "filename": "ep.mp3"})

    def test_chunks_are_transcribed_in_order_and_merged(self):
        self.splitter.split_if_needed.return_value = chunked_result(3)
        self.transcribe_fn.side_effect = lambda audio, options: {
            "transcript": f"text of {options['filename']}",
            "estimated_cost": 0.02,
        }

        result = ChunkedTranscriber(self.transcribe_fn, self.splitter).transcribe_large(AUDIO, "ep.mp3")

        filenames = [c[0][1]["filename"] for c in self.transcribe_fn.call_args_list]
        self.assertEqual(filenames, ["ep_chunk1.mp3", "ep_chunk2.mp3", "ep_chunk3.mp3"])
        self.assertEqual(
            result["transcript"],
            "text of ep_chunk1.mp3\n\ntext of ep_chunk2.mp3\n\ntext of ep_chunk3.mp3"
        )
        self.assertAlmostEqual(result["estimated_cost"], 0.06)
        self.assertEqual(result["formatted_cost"], "$0.0600")
        self.assertTrue(result["chunked"])
        self.assertEqual(result["total_chunks"], 3)
        self.assertEqual(result["audio_duration_seconds"], 3600.0)
        self.assertEqual(result["audio_duration_minutes"], 60.0)
        self.assertEqual(result["filename"], "ep.mp3")

    def test_failing_chunk_aborts_request(self):
        self.splitter.split_if_needed.return_value = chunked_result(3)
        self.transcribe_fn.side_effect = [
            {"transcript": "ok", "estimated_cost": 0.01},
            RuntimeError("provider timeout"),
            {"transcript": "never", "estimated_cost": 0.01},
        ]

        with self.assertRaises(RuntimeError):
            ChunkedTranscriber(self.transcribe_fn, self.splitter).transcribe_large(AUDIO, "ep.mp3")

        self.assertEqual(self.transcribe_fn.call_count, 2)

    def test_splitter_errors_propagate(self):
        self.splitter.split_if_needed.side_effect = ProcessingError("ffmpeg", "split failed", returncode=1)

        with self.assertRaises(ProcessingError):
            ChunkedTranscriber(self.transcribe_fn, self.splitter).transcribe_large(AUDIO, "ep.mp3")
        self.transcribe_fn.assert_not_called()

    def test_unsplit_upload_reaches_provider_without_format_checks(self):
        tiny = b"a" * 500
        self.splitter.split_if_needed.return_value = SplitResult(
            chunked=False, chunks=[AudioChunk(buffer=tiny, filename="a.aac", index=0)], original_size=len(tiny)
        )
        self.transcribe_fn.return_value = {"transcript": "short clip", "estimated_cost": 0.001}

        result = ChunkedTranscriber(self.transcribe_fn, self.splitter).transcribe_large(tiny, "a.aac")

        self.assertEqual(result["transcript"], "short clip")
        self.transcribe_fn.assert_called_once_with(tiny, {"filename": "a.aac"})

    def test_real_splitter_passes_small_upload_through(self):
        self.transcribe_fn.return_value = {"transcript": "opus clip", "estimated_cost": 0.0}

        result = ChunkedTranscriber(self.transcribe_fn, AudioSplitter()).transcribe_large(b"a" * 500, "clip.opus")

        self.assertEqual(result["transcript"], "opus clip")

    def test_provider_object_is_accepted(self):
        self.splitter.split_if_needed.return_value = chunked_result(2)

        result = transcribe_large_audio(AUDIO, "ep.mp3", EchoProvider(), splitter=self.splitter)

        self.assertEqual(result["transcript"], "chunk-0\n\nchunk-1")
        self.assertEqual(result["estimated_cost"], 1.0)

    def test_rejects_non_callable(self):
        with self.assertRaises(TypeError):
            as_transcribe_fn("whisper")


class TestAudioValidation(unittest.TestCase):
    def test_size_ceiling(self):
        with self.assertRaises(ValidationError):
            validate_audio_file(AUDIO, "ep.mp3", max_size_bytes=4000)

    def test_format_from_mime_type(self):
        info = validate_audio_file(AUDIO, None, mime_type="audio/x-m4a")
        self.assertEqual(info["extension"], "m4a")
        self.assertEqual(info["file_size"], 5000)

    def test_unknown_format_only_warns(self):
        with self.assertLogs("Podcraft.Audio.Transcription", level="WARNING"):
            info = validate_audio_file(AUDIO, "recording")
        self.assertIsNone(info["extension"])


class TestCostEstimate(unittest.TestCase):
    def test_cost_from_duration(self):
        cost = calculate_transcription_cost(600)
        self.assertEqual(cost["duration_minutes"], 10.0)
        self.assertEqual(cost["formatted_cost"], "$0.0600")

    def test_requirements_follow_splitter_config(self):
        splitter = AudioSplitter(AudioConfig(max_large_file_size_mb=200))
        requirements = get_audio_requirements(splitter)
        self.assertEqual(requirements["max_file_size_mb"], 25)
        self.assertEqual(requirements["max_large_file_size_mb"], 200)
        self.assertIn("m4a", requirements["supported_formats"])

    def test_one_minute_at_128_kbps(self):
        estimate = estimate_transcription_cost(960_000)
        self.assertEqual(estimate["estimated_duration_seconds"], 60)
        self.assertEqual(estimate["estimated_duration_minutes"], 1.0)
        self.assertEqual(estimate["estimated_cost"], 0.006)

    def test_no_size(self):
        self.assertEqual(estimate_transcription_cost(0)["estimated_cost"], 0.0)


if __name__ == '__main__':
    unittest.main()
