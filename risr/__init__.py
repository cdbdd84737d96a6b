from risr.manager import Deployment, DeploymentManager, Phase
from risr.stacks import Stack, load_stack, parse_stack

__version__ = "0.1.0"

__all__ = [
    "Deployment",
    "DeploymentManager",
    "Phase",
    "Stack",
    "load_stack",
    "parse_stack",
]
