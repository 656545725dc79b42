from .chunking import AudioSplitter, split_audio_into_chunks
from .transcription import ChunkedTranscriber, transcribe_large_audio, merge_chunk_results
