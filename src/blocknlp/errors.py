"""
Error Types

Two failure classes are raised by the block layer:

- IllegalOperationError: a call that is meaningless for the role of the
  receiver (a Jacobian of a variable block, new values for a constraint).
  This is framework misuse and is never caught inside the package.
- ConfigurationError: a problem that was assembled incorrectly (duplicate
  names, wrong lengths, appending to a frozen assembler).
"""


class BlockNLPError(Exception):
    """Base class for all blocknlp errors."""


class IllegalOperationError(BlockNLPError, TypeError):
    """Operation not defined for the role of this component."""


class ConfigurationError(BlockNLPError, ValueError):
    """Problem blocks were set up inconsistently."""
