"""
Terminal bootstrap service — layered like an onion:

    data → domain → detection → execution → orchestration

Lower layers never import higher ones. Import from the defining
module (``...orchestration.runner``) rather than from this package;
the run context depends on the execution layer, so this package
re-exports nothing.
"""
