from episode_heatmap.navigation.history import NavigationStack

__all__ = ["NavigationStack"]
