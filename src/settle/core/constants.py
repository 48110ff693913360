"""Global constants for settle.

Centralizes the fixed numbers of the retry and bind-discovery loops,
making them discoverable and consistent across modules.
"""

# =============================================================================
# Eventual assertions
# =============================================================================

EVENTUALLY_MAX_BACKOFF_MS = 1000
"""Ceiling for the exponential backoff between eventual-assertion attempts."""

EVENTUALLY_DEFAULT_TIMEOUT_SECONDS = 10.0
"""Default deadline for ``assert_eventually`` when no timeout is given."""

EVENTUALLY_TIMEOUT_MESSAGE = "Timed out waiting for the probe to pass."
"""Message of the synthetic failure raised when the final attempt passes late."""

# =============================================================================
# Bound port discovery
# =============================================================================

BIND_TOOL = "lsof"
"""Diagnostic tool used to discover the port a process is bound to."""

BIND_TOOL_SEARCH_PATHS = ("/sbin", "/usr/sbin")
"""Directories checked for the bind tool before falling back to PATH."""

BIND_TOOL_FLAGS = ("-wbnP", "-Ffn")
"""No warnings, no blocking, numeric hosts and ports, pid/fd/name fields."""

BIND_POLL_STEP_MS = 10
"""Linear backoff step: attempt ``i`` sleeps ``i * BIND_POLL_STEP_MS``."""

BIND_DEFAULT_TIMEOUT_SECONDS = 30.0
"""Default deadline for bound port discovery."""

BIND_ADDRESS_PREFIX = "n*:"
"""Prefix of the lsof name record for a socket bound to the wildcard address."""

MAX_PORT = 65535
"""Largest valid TCP/UDP port number."""

# =============================================================================
# Output truncation
# =============================================================================

TRUNCATE_TOOL_OUTPUT_CHARS = 500
"""Maximum characters of tool stdout/stderr included in log events."""
