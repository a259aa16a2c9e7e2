"""Session domain services: the session store and leaderboard aggregation.

`store` owns session creation and completion; `leaderboard` derives
read-only per-user statistics from completed sessions. HTTP routes call
into these modules so that request handling stays separate from the rules
for completing sessions and ranking players.
"""
