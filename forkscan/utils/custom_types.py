from typing import TypedDict, NotRequired


class Deployment(TypedDict):
    chainId: int
    chainName: str
    rpc: str
    blockExplorer: NotRequired[str]
    contracts: dict[str, str]
    poolInitCodeHash: str


class ArtifactSource(TypedDict):
    repo: str
    path: str
