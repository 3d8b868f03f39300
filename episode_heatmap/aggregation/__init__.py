from episode_heatmap.aggregation.aggregator import (
    build_episode,
    build_heatmap,
    build_season,
    compute_stats,
)

__all__ = ["build_episode", "build_heatmap", "build_season", "compute_stats"]
