"""
Test Fixtures

Shared test data for the Funmi Gateway test suite.
Contains sample messages categorized by the mode the keyword rules infer.
"""

from app.registry import Mode

# Sample messages for testing capability inference
GENERATE_IMAGE_SAMPLES = [
    "Draw a cat in a hat",
    "generate a logo for my shop",
    "Make a picture of the sea at night",
    "I need an illustration of a fox",
]

ANALYZE_FILES_SAMPLES = [
    "Analyze this quarterly report",
    "summarise the attached notes",
    "Please check tone of this email",
    "extract the key dates",
]

WEB_SEARCH_SAMPLES = [
    "search for flights to Lagos",
    "Who is the president of Ghana?",
    "how to bake sourdough bread",
    "find cheap hotels in Accra",
    "what is the speed of light",
]

DEFAULT_SAMPLES = [
    "hello there",
    "tell me a joke",
    "thanks for your help",
    "I feel tired today",
]

# Messages whose vocabulary matches more than one rule
OVERLAPPING_SAMPLES = [
    # Image rule is checked before the analysis rule
    ("create a summary and analyze it", Mode.GENERATE_IMAGE),
    # Analysis rule is checked before the search rule
    ("summarize what is in this doc", Mode.ANALYZE_FILES),
]


def get_all_samples() -> list[tuple[str, Mode]]:
    """
    Get all samples with their expected modes.

    Returns:
        List of (message, expected_mode) tuples
    """
    samples = []
    samples.extend((s, Mode.GENERATE_IMAGE) for s in GENERATE_IMAGE_SAMPLES)
    samples.extend((s, Mode.ANALYZE_FILES) for s in ANALYZE_FILES_SAMPLES)
    samples.extend((s, Mode.WEB_SEARCH) for s in WEB_SEARCH_SAMPLES)
    samples.extend((s, Mode.DEFAULT) for s in DEFAULT_SAMPLES)
    samples.extend(OVERLAPPING_SAMPLES)
    return samples
