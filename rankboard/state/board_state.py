from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterable, NamedTuple

class LeaderboardRow(NamedTuple):
    """One row of the users x submission x scores x admin join.

    Score columns are None when the user has no submission or the submission
    has not been scored yet.
    """
    user_id: int
    username: str
    avatar_filename: Optional[str]
    submission_id: Optional[int]
    score_id: Optional[int]
    admin_id: Optional[int]
    admin_username: Optional[str]
    score: Optional[int]
    feedback: Optional[str]

@dataclass
class ScoreItem:
    admin_id: int
    admin_username: str
    score: int
    feedback: Optional[str]

    def describe_json(self) -> Dict[str, Any]:
        return {
            'admin_id': self.admin_id,
            'admin_username': self.admin_username,
            'score': self.score,
            'feedback': self.feedback,
        }

@dataclass
class LeaderboardEntry:
    user_id: int
    username: str
    avatar_filename: Optional[str]
    submission_id: Optional[int]
    scores: List[ScoreItem] = field(default_factory=list)
    total_score: int = 0
    rank: int = 0

    def add_score(self, item: ScoreItem) -> bool:
        if any(s.admin_id==item.admin_id for s in self.scores):
            return False

        self.scores.append(item)
        self.total_score += item.score
        return True

    def describe_json(self) -> Dict[str, Any]:
        return {
            'rank': self.rank,
            'user_id': self.user_id,
            'username': self.username,
            'avatar_filename': self.avatar_filename,
            'submission_id': self.submission_id,
            'scores': [s.describe_json() for s in self.scores],
            'total_score': self.total_score,
        }

def group_rows(rows: Iterable[LeaderboardRow]) -> Dict[int, LeaderboardEntry]:
    entries: Dict[int, LeaderboardEntry] = {}

    for row in rows:
        entry = entries.get(row.user_id, None)
        if entry is None:
            entry = LeaderboardEntry(
                user_id=row.user_id,
                username=row.username,
                avatar_filename=row.avatar_filename,
                submission_id=row.submission_id,
            )
            entries[row.user_id] = entry

        if row.score_id is not None:
            if row.admin_id is None or row.score is None:
                raise ValueError(f'score row without admin or value for U#{row.user_id}')
            # join fan-out may repeat the same admin, first one wins
            entry.add_score(ScoreItem(
                admin_id=row.admin_id,
                admin_username=row.admin_username or '--',
                score=row.score,
                feedback=row.feedback,
            ))

    return entries

def rank_entries(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    board = sorted(entries, key=lambda e: (-e.total_score, e.username))
    for idx, entry in enumerate(board):
        entry.rank = idx+1 # ties are not collapsed
    return board

def fold_leaderboard(rows: Iterable[LeaderboardRow]) -> List[LeaderboardEntry]:
    return rank_entries(group_rows(rows).values())
