from .adapter import ActivityTrackerAdapter
