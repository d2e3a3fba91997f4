from .board_state import LeaderboardRow, ScoreItem, LeaderboardEntry, group_rows, rank_entries, fold_leaderboard
from .user_state import User
