import random
from typing import List, Optional

from memorygame.models import Card


DEFAULT_THEME = 'emojis'

THEMES = {
    'emojis': ['🎮', '🎯', '🎨', '🎪', '🎭', '🎸', '🎵', '⭐', '🌟', '💎', '🔮', '🎁', '🎉', '🎊', '🎈', '🎀', '🌈', '⚡'],
    'animals': ['🐶', '🐱', '🐭', '🐹', '🐰', '🦊', '🐻', '🐼', '🐯', '🦁', '🐸', '🐵', '🐧', '🐦', '🦄', '🐝', '🐛', '🦋'],
    'numbers': ['1', '2', '3', '4', '5', '6', '7', '8', '9', '10', '11', '12', '13', '14', '15', '16', '17', '18'],
    'letters': ['A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'I', 'J', 'K', 'L', 'M', 'N', 'O', 'P', 'Q', 'R'],
}


def resolve_theme(theme: str, pairs: int) -> str:
    """Theme to deal from.

    Falls back to the default theme when the requested one is unknown or
    cannot supply ``pairs`` distinct symbols.
    """
    symbols = THEMES.get(theme)
    if not symbols or len(symbols) < pairs:
        return DEFAULT_THEME
    return theme


def shuffle(cards: list, rng: Optional[random.Random] = None) -> list:
    """In-place Fisher-Yates shuffle; every permutation is equally likely."""
    rng = rng or random
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def generate_board(grid_size: int, theme: str, rng: Optional[random.Random] = None) -> List[Card]:
    """Deal a shuffled board of paired cards for a ``grid_size`` x ``grid_size`` grid.

    Uses the first grid²/2 symbols of the theme, truncating when the theme
    is smaller (the board then has fewer pairs than cells).
    """
    pairs = (grid_size * grid_size) // 2
    selected = THEMES.get(theme, THEMES[DEFAULT_THEME])[:pairs]
    cards = []
    for i, symbol in enumerate(selected):
        cards.append(Card(id=i * 2, symbol=symbol))
        cards.append(Card(id=i * 2 + 1, symbol=symbol))
    return shuffle(cards, rng)
