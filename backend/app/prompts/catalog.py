# app/prompts/catalog.py
import json
import random
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

SCENARIOS_PATH = Path(__file__).resolve().parent / "data" / "scenarios.json"

POSITION_DESCRIPTIONS = {
    "left": "a left-wing progressive",
    "centre-left": "a social democrat",
    "centre": "a centrist",
    "centre-right": "a moderate conservative",
    "right": "a national conservative",
    "progressive": "a progressive",
    "conservative": "a traditional conservative",
    "libertarian": "a libertarian",
    "green": "an environmentalist",
    "socialist": "a socialist",
}


@dataclass(frozen=True)
class Prompt:
    id: str
    category: str
    scenario: str
    positions: List[str] = field(default_factory=list)
    char_limit: int = 500

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category,
            "scenario": self.scenario,
            "positions": list(self.positions),
            "charLimit": self.char_limit,
        }


def describe_position(position: str) -> str:
    return POSITION_DESCRIPTIONS.get(position, position)


@lru_cache(maxsize=1)
def get_all_prompts() -> List[Prompt]:
    raw = json.loads(SCENARIOS_PATH.read_text(encoding="utf-8"))
    return [
        Prompt(
            id=item["id"],
            category=item["category"],
            scenario=item["scenario"],
            positions=list(item.get("positions") or []),
            char_limit=int(item.get("charLimit", 500)),
        )
        for item in raw
    ]


def get_prompt_by_id(prompt_id: str) -> Optional[Prompt]:
    for prompt in get_all_prompts():
        if prompt.id == prompt_id:
            return prompt
    return None


def get_prompts_by_category(category: str) -> List[Prompt]:
    return [p for p in get_all_prompts() if p.category == category]


def get_random_prompt(rng: Optional[random.Random] = None) -> Prompt:
    return (rng or random).choice(get_all_prompts())
