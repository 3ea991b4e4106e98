"""Container image reference parsing."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageReference:
    """A parsed image locator such as ``registry/path/app:1.2.3``."""

    raw: str
    identity: str
    tag: str

    def same_family(self, other: "ImageReference") -> bool:
        """Return true when both references name the same repository."""
        return self.identity == other.identity


def parse_image(raw: str | None) -> ImageReference:
    """Split an image locator into its repository identity and tag.

    Registry hosts with a port (``host:5000/app``) keep their port because only
    the final path segment is searched for a tag. Malformed input never raises;
    images already running in a cluster are parsed as leniently as possible.

    Args:
        raw: The image locator.

    Returns:
        The parsed reference. Missing parts are empty strings.
    """
    uri = raw or ""
    segments = uri.split("/")
    last = segments.pop()
    parts = last.split(":")
    tag = parts.pop() if len(parts) > 1 else ""
    identity = "/".join([*segments, ":".join(parts)])
    return ImageReference(raw=uri, identity=identity, tag=tag)
