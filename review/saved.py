"""
Saved analysis files: players plus a finished report, replayable without
evaluating anything.

Format:
    {"players": {"white": {"username": ..., "rating": ...},
                 "black": {"username": ..., "rating": ...}},
     "results": <report>}
"""

import json
from dataclasses import dataclass

from review.errors import SaveFileError
from review.models import AnalysisResult, Players, Profile


@dataclass
class SavedAnalysis:
    players: Players
    results: dict

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "SavedAnalysis":
        return cls(players=result.players, results=result.report)

    def to_dict(self) -> dict:
        return {"players": self.players.to_dict(), "results": self.results}


def _profile_from_dict(data) -> Profile:
    if not isinstance(data, dict) or not isinstance(data.get("username"), str):
        raise SaveFileError()
    rating = data.get("rating", "?")
    return Profile(username=data["username"], rating=str(rating))


def saved_analysis_from_dict(data) -> SavedAnalysis:
    """Validate a decoded save file. Raises SaveFileError on any shape problem."""
    if not isinstance(data, dict):
        raise SaveFileError()
    players = data.get("players")
    results = data.get("results")
    if not isinstance(players, dict) or not isinstance(results, dict):
        raise SaveFileError()

    return SavedAnalysis(
        players=Players(
            white=_profile_from_dict(players.get("white")),
            black=_profile_from_dict(players.get("black")),
        ),
        results=results,
    )


def load_saved_analysis(text: str) -> SavedAnalysis:
    """Parse a saved analysis from JSON text."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise SaveFileError() from e
    return saved_analysis_from_dict(data)


def dump_saved_analysis(saved: SavedAnalysis) -> str:
    return json.dumps(saved.to_dict(), indent=2)
