"""Run ID generation using coolnames for unique, memorable identifiers."""

from coolname import generate_slug


def generate_run_id(command: str = "") -> str:
    """Generate a memorable identifier for one CLI invocation.

    The ID is attached to every log line of the run so the lines of a
    single dump or cache purge can be grepped together.

    Args:
        command: Optional command name to prepend (e.g., "dump")

    Returns:
        An ID in the format "command-word1-word2" or "word1-word2"

    Examples:
        >>> generate_run_id()
        'golden-tiger'
        >>> generate_run_id("dump")
        'dump-swift-falcon'
    """
    slug = generate_slug(2)

    if command:
        return f"{command}-{slug}"

    return slug
