"""
Shard assignment for visitor keys.

The tracker places a request set by the first character of a hex key
(the visitor id in hex, or the MD5 of the client IP). Hex digits map to
their value, any other character to its code point, modulo the shard count.
"""

HEX_CHARS = "0123456789abcdef"

# Fixed 16 entry table: '0'..'9' -> 0..9, 'a'..'f' -> 10..15
HEX_VALUES = {char: value for value, char in enumerate(HEX_CHARS)}


def starting_letter(identifier: str) -> str:
    """Lowercased first character of a key, empty for an empty key"""
    return identifier[:1].lower()


def compute_shard(identifier: str, shard_count: int) -> int:
    """
    Compute the shard a key is assigned to.

    Args:
        identifier: Sharding key, normally a hex string
        shard_count: Number of shards (at least 1)

    Returns:
        Shard index in ``[0, shard_count)``
    """
    if shard_count < 1:
        raise ValueError(f"shard_count must be at least 1, got {shard_count}")

    letter = starting_letter(identifier)
    if not letter:
        return 0

    value = HEX_VALUES.get(letter)
    if value is None:
        value = ord(letter)

    return value % shard_count


class ShardKeyMapper:
    """compute_shard bound to a fixed shard count."""

    def __init__(self, shard_count: int):
        if shard_count < 1:
            raise ValueError(f"shard_count must be at least 1, got {shard_count}")
        self.shard_count = shard_count

    def shard_for(self, identifier: str) -> int:
        return compute_shard(identifier, self.shard_count)
