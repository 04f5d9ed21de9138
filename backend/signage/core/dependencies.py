from fastapi import Request

from signage.realtime.hub import BroadcastHub


def get_hub(request: Request) -> BroadcastHub:
    """The hub created by create_app(); one per application instance."""
    return request.app.state.hub
