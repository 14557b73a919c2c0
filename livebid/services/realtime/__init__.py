from .broadcaster import EventBroadcaster, Observer
