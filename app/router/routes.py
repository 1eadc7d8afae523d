"""
Semantic Route Definitions for Capability Inference

This module defines the semantic routes used when the semantic classifier
strategy is enabled. Each route is a collection of utterances (example
requests) representing one request mode; the embedding model matches new
messages against them even when the exact phrasing differs.

Routes:
    - generate_image: Requests to draw, render or create pictures
    - analyze_files: Requests to summarize or analyze attached content
    - web_search: Lookups of facts, people, places and how-tos
    - chat: Conversation and open-ended questions

Route names map to request modes through ROUTE_MODES.
"""

from semantic_router import Route

from app.registry.providers import Mode


GENERATE_IMAGE_UTTERANCES: list[str] = [
    "Draw a cat wearing a space suit",
    "Generate an image of a sunset over the ocean",
    "Create a picture of a mountain village",
    "Make an illustration for my children's book",
    "Paint a watercolor of a city street",
    "Show me what a dragon made of glass would look like",
    "Design a logo for my bakery",
    "Render a futuristic car",
    "I need a poster with a robot on it",
    "Sketch a portrait of an old sailor",
    "Produce artwork of a forest at night",
    "Can you make me a wallpaper with stars",
    "Picture of a dog surfing a wave",
    "Visualize a castle floating in the clouds",
    "Create an avatar for my profile",
]

ANALYZE_FILES_UTTERANCES: list[str] = [
    "Summarize this document",
    "Analyze the attached file",
    "What does this report say",
    "Check the tone of this letter",
    "Extract the key points from this text",
    "Give me a summary of the uploaded notes",
    "Review this contract for me",
    "Pull out the action items from these minutes",
    "What are the main findings in this paper",
    "Read this file and tell me what it is about",
    "Highlight the important dates in this document",
    "Is this essay written formally",
    "Condense this article into bullet points",
    "List the names mentioned in the file",
    "Find any errors in this text",
]

WEB_SEARCH_UTTERANCES: list[str] = [
    "Search for the best pizza places nearby",
    "Who is the president of France",
    "What is the capital of Australia",
    "Look up the weather in Lagos tomorrow",
    "How to change a car tire",
    "Find the latest news about electric cars",
    "When was the Eiffel Tower built",
    "What is the population of Nigeria",
    "Latest football scores",
    "Where can I buy cheap flights to London",
    "How tall is Mount Kilimanjaro",
    "Current exchange rate of the dollar to the naira",
    "Who won the Nobel Prize in physics this year",
    "Find reviews of the new iPhone",
    "What time does the museum open",
]

CHAT_UTTERANCES: list[str] = [
    "Hi, how are you",
    "Tell me a joke",
    "I'm feeling a bit down today",
    "Can you help me write an email to my boss",
    "What do you think about learning to code",
    "Let's talk about movies",
    "Give me advice on staying productive",
    "Write a short poem about rain",
    "Explain recursion like I'm five",
    "Thanks for your help",
    "Good morning",
    "Help me plan my week",
    "Translate hello into Yoruba",
    "What should I cook for dinner",
    "Tell me something interesting",
]


ROUTE_MODES: dict[str, Mode] = {
    "generate_image": Mode.GENERATE_IMAGE,
    "analyze_files": Mode.ANALYZE_FILES,
    "web_search": Mode.WEB_SEARCH,
    "chat": Mode.DEFAULT,
}


def create_routes() -> list[Route]:
    """
    Create semantic Route objects from utterance definitions.

    Each Route is initialized with:
    - name: Unique identifier mapped to a request mode by ROUTE_MODES
    - utterances: List of example requests for this mode
    - description: Human-readable description for documentation

    Returns:
        list[Route]: List of 4 configured Route objects ready for routing.
    """
    generate_image = Route(
        name="generate_image",
        utterances=GENERATE_IMAGE_UTTERANCES,
        description="Image generation requests",
    )

    analyze_files = Route(
        name="analyze_files",
        utterances=ANALYZE_FILES_UTTERANCES,
        description="Analysis or summary of attached content",
    )

    web_search = Route(
        name="web_search",
        utterances=WEB_SEARCH_UTTERANCES,
        description="Fact lookups and web searches",
    )

    chat = Route(
        name="chat",
        utterances=CHAT_UTTERANCES,
        description="Open-ended conversation",
    )

    return [generate_image, analyze_files, web_search, chat]


def get_route_names() -> list[str]:
    """
    Return list of all semantic route names.

    Returns:
        list[str]: List of 4 route name strings.
    """
    return list(ROUTE_MODES)
