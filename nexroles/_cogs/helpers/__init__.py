"""
General-purpose helpers not related to the reconciliation itself
(neither to the lifecycle nor to the runner nor to the structs),
which are used to prepare and control the runtime environment.

As a rule of thumb, helpers MUST be abstracted from the package
to such an extent that they could be extracted as reusable libraries.
"""
