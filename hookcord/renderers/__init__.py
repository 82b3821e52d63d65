"""Event renderers: map a GitHubEvent and a target format to a message."""

from hookcord.models import GitHubEvent, RenderFormat

from .base import EventRenderer, RenderedMessage
from .events import RENDERERS, renderer_for


def render(event: GitHubEvent, fmt: RenderFormat) -> RenderedMessage:
    """Render *event* as an embed or plain text message."""
    return renderer_for(event.type).render(event, fmt)


__all__ = ["EventRenderer", "RENDERERS", "RenderedMessage", "render", "renderer_for"]
