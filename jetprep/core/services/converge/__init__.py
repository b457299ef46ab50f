"""
Convergence operations — one module per managed resource.

Each module exposes ``RESOURCE``, ``ensure(config, runner) -> Outcome``
and, where the resource has an observable state, a side-effect free
``probe(config) -> ProbeResult``.
"""
