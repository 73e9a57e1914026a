"""Session-scoped entity identifiers.

Obstacle ids are plain integers handed out by an ``IdGenerator`` that is
owned by one simulation session (the engine), never by the process. Two
sessions therefore never share a counter, and restarting a session resets
its counter without touching any other session.

Usage:
------
    gen = IdGenerator()
    gen.next_obstacle()  # 0
    gen.next_obstacle()  # 1
    gen.reset()
    gen.next_obstacle()  # 0
"""


class IdGenerator:
    """Generates unique obstacle ids for one session.

    IDs start at ``start_offset`` and are never reused until ``reset()``
    is called as part of a restart.
    """

    def __init__(self, start_offset: int = 0) -> None:
        """Initialize the generator.

        Args:
            start_offset: First id to hand out (for testing)
        """
        if start_offset < 0:
            raise ValueError("start_offset must be >= 0")
        self._obstacle_counter = start_offset

    def next_obstacle(self) -> int:
        """Return the next obstacle id and advance the counter."""
        obstacle_id = self._obstacle_counter
        self._obstacle_counter += 1
        return obstacle_id

    def peek(self) -> int:
        """The id the next call to ``next_obstacle`` will return."""
        return self._obstacle_counter

    def reset(self) -> None:
        """Restart numbering from zero."""
        self._obstacle_counter = 0
