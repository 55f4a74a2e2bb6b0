"""appreg — permissioned application-release and node registry.

Holds the current release record of an application and a directory of
network node endpoints admitted through a pending -> approved workflow.
"""

__version__ = "0.1.0"
