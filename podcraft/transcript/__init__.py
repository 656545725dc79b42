from .tokens import estimate_tokens, tokens_to_words, tokens_to_chars
from .truncation import Truncator, truncate_transcript, prepare_transcript
from .budget import ContextBudgetCalculator, calculate_transcript_budget
