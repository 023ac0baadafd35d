from wgqed.core.waveguide.basis import TimeIndexCell, WaveguideBasis
from wgqed.core.waveguide.operators import (
    DenseOp,
    IdentityOp,
    WaveguideOperator,
    create,
    destroy,
    identity,
    local_op,
)
from wgqed.core.waveguide.states import onephoton, twophoton, vacuum

__all__ = [
    "TimeIndexCell",
    "WaveguideBasis",
    "DenseOp",
    "IdentityOp",
    "WaveguideOperator",
    "create",
    "destroy",
    "identity",
    "local_op",
    "onephoton",
    "twophoton",
    "vacuum",
]
