"""Registry: the source-of-truth layer for seed varieties.

The registry provides:
- Registration: sequential ids, registrant becomes the first steward
- Stewardship: per-variety access control for every mutation
- Lifecycle: detail updates and one-way deactivation
- Snapshots: optional JSON persistence between processes
"""

MAX_RARITY_LEVEL = 5
