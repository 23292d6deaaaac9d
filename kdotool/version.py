"""Package version."""

VERSION = "0.2.2"
