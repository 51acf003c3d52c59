"""Demo tools used by the command line to show function calling end to end."""

import logging
import random
from typing import Any, Dict, Optional

from .registry import ToolRegistry
from .types import ToolDescriptor, ToolParameter

logger = logging.getLogger(__name__)

_TRAILS = (
    "Forest Trail - 5km loop through pine forest",
    "Mountain View Path - 8km with scenic overlooks",
    "River Walk - 3km easy path along the water",
    "Summit Challenge - 12km steep climb to peak",
)

_RESTAURANTS = (
    "Pizza Palace - Italian cuisine",
    "Sushi Master - Japanese cuisine",
    "Burger Corner - American fast food",
    "Pasta House - Italian pasta",
    "Taco Stand - Mexican food",
)

# Units per US dollar.
_RATES = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "RUB": 92.5,
    "JPY": 151.0,
    "CNY": 7.2,
}


def get_current_weather(location: str, unit: str = "celsius", rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Get the current weather in a given location."""
    rng = rng or random
    temperature = rng.randint(5, 20)
    conditions = rng.choice(("sunny", "rainy"))
    return {
        "location": location,
        "temperature": temperature,
        "unit": unit,
        "conditions": conditions,
        "description": f"The weather is {temperature} degrees {unit} and {conditions}.",
    }


def find_hiking_trails(location: str, difficulty: str = "moderate", rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Find hiking trails near a location with specified difficulty level."""
    rng = rng or random
    trails = rng.sample(_TRAILS, 2)
    return {
        "location": location,
        "difficulty": difficulty,
        "trails": trails,
        "count": len(trails),
    }


def search_restaurants(query: str, max_results: int = 5, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Search for restaurants based on query."""
    rng = rng or random
    count = max(0, min(int(max_results), len(_RESTAURANTS)))
    restaurants = rng.sample(_RESTAURANTS, count)
    return {
        "query": query,
        "restaurants": restaurants,
        "count": len(restaurants),
    }


def convert_currency(from_currency: str, to_currency: str, amount: float = 1) -> Dict[str, Any]:
    """Convert an amount between two currencies at fixed demo rates."""
    source = from_currency.strip().upper()
    target = to_currency.strip().upper()
    if source not in _RATES:
        raise ValueError(f"Unknown currency: {from_currency}")
    if target not in _RATES:
        raise ValueError(f"Unknown currency: {to_currency}")

    converted = round(float(amount) / _RATES[source] * _RATES[target], 2)
    return {
        "from": source,
        "to": target,
        "amount": amount,
        "result": converted,
    }


def create_demo_registry(rng: Optional[random.Random] = None) -> ToolRegistry:
    """
    Build a registry holding the demo tools.

    Parameters are declared explicitly so the ``rng`` hook is never exposed
    to the model.

    Args:
        rng: Random source for reproducible output

    Returns:
        Registry with the four demo tools
    """
    registry = ToolRegistry()

    registry.register(ToolDescriptor(
        name="get_current_weather",
        description="Get the current weather in a given location",
        function=lambda location, unit="celsius": get_current_weather(location, unit, rng),
        parameters=(
            ToolParameter("location", str, "City or place name"),
            ToolParameter("unit", str, "Temperature unit", default="celsius", enum_values=("celsius", "fahrenheit")),
        ),
    ))
    registry.register(ToolDescriptor(
        name="find_hiking_trails",
        description="Find hiking trails near a location with specified difficulty level",
        function=lambda location, difficulty="moderate": find_hiking_trails(location, difficulty, rng),
        parameters=(
            ToolParameter("location", str, "City or place name"),
            ToolParameter(
                "difficulty", str, "Trail difficulty",
                default="moderate", enum_values=("easy", "moderate", "hard"),
            ),
        ),
    ))
    registry.register(ToolDescriptor(
        name="search_restaurants",
        description="Search for restaurants based on query",
        function=lambda query, max_results=5: search_restaurants(query, max_results, rng),
        parameters=(
            ToolParameter("query", str, "What to search for"),
            ToolParameter("max_results", int, "Maximum number of results", default=5),
        ),
    ))
    registry.register(ToolDescriptor(
        name="convert_currency",
        description="Convert an amount from one currency to another",
        function=convert_currency,
        parameters=(
            ToolParameter("from_currency", str, "ISO code of the source currency"),
            ToolParameter("to_currency", str, "ISO code of the target currency"),
            ToolParameter("amount", float, "Amount to convert", default=1),
        ),
    ))

    logger.debug(f"Created demo registry with {len(registry)} tools")
    return registry
