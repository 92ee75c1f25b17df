from .feed import HEADLINE_TEMPLATES, HeadlineSource, NewsFeed, SyntheticHeadlineSource

__all__ = ["HEADLINE_TEMPLATES", "HeadlineSource", "NewsFeed", "SyntheticHeadlineSource"]
