import json

from forkscan.utils import abi

ERC20_ABI = [{"type": "function", "name": "totalSupply", "inputs": []}]


def make_deployment(**contracts):
    return {
        "chainId": 6343,
        "chainName": "MegaETH Testnet",
        "rpc": "https://deployed",
        "blockExplorer": "https://explorer.example/",
        "contracts": contracts,
        "poolInitCodeHash": "",
    }


def write_artifact(root, contract_name, content):
    source = abi.ARTIFACT_SOURCES[contract_name]
    path = root / source["repo"] / source["path"]
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(content))


def test_extract_abi_from_artifact(tmp_path):
    write_artifact(tmp_path, "ERC20", {"abi": ERC20_ABI, "bytecode": "0x"})
    source = abi.ARTIFACT_SOURCES["ERC20"]
    path = tmp_path / source["repo"] / source["path"]

    assert abi.extract_abi_from_artifact(str(path)) == ERC20_ABI


def test_extract_abi_from_missing_or_broken_artifact(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")

    assert abi.extract_abi_from_artifact(str(tmp_path / "absent.json")) is None
    assert abi.extract_abi_from_artifact(str(broken)) is None


def test_fetch_abis_writes_artifact_abis(tmp_path, monkeypatch):
    monkeypatch.setattr(abi, "fetch_abi_from_explorer", lambda *args: None)
    monkeypatch.setattr(abi.time, "sleep", lambda seconds: None)
    write_artifact(tmp_path / "repos", "ERC20", {"abi": ERC20_ABI})
    abis_dir = tmp_path / "abis"

    results = abi.fetch_abis(
        make_deployment(WETH9="0x42", TickLens="0x01"),
        str(abis_dir),
        str(tmp_path / "repos"),
    )

    assert results == {
        "fetched": ["ERC20"],
        "skipped": ["WETH9"],
        "failed": ["TickLens", "UniswapV3Pool"],
    }
    assert json.loads((abis_dir / "ERC20.json").read_text()) == ERC20_ABI
    assert (abis_dir / "ERC20.json").read_text().endswith("]\n")


def test_fetch_abis_falls_back_to_explorer(tmp_path, monkeypatch):
    requested = []

    def fetch_abi_from_explorer(address, explorer_url):
        requested.append((address, explorer_url))
        return ERC20_ABI

    monkeypatch.setattr(abi, "fetch_abi_from_explorer", fetch_abi_from_explorer)
    monkeypatch.setattr(abi.time, "sleep", lambda seconds: None)
    abis_dir = tmp_path / "abis"

    results = abi.fetch_abis(
        make_deployment(TickLens="0x01"),
        str(abis_dir),
        str(tmp_path / "repos"),
        dry_run=True,
    )

    assert "TickLens" in results["fetched"]
    assert requested == [("0x01", "https://explorer.example/")]
    assert not abis_dir.exists()


def test_fetch_permit2_abi(monkeypatch):
    class FakeResponse:
        def json(self):
            return {"status": "1", "result": json.dumps(ERC20_ABI)}

    urls = []
    monkeypatch.setattr(abi, "fetch", lambda url: urls.append(url) or FakeResponse())

    assert abi.fetch_permit2_abi("token") == ERC20_ABI
    assert urls[0].endswith("&apikey=token")


def test_fetch_permit2_abi_rejected(monkeypatch):
    class FakeResponse:
        def json(self):
            return {"status": "0", "result": "Invalid API Key"}

    monkeypatch.setattr(abi, "fetch", lambda url: FakeResponse())

    assert abi.fetch_permit2_abi(None) is None


def test_fetch_permit2_abi_invalid_json(monkeypatch):
    class FakeResponse:
        def json(self):
            return {"status": "1", "result": "not json"}

    monkeypatch.setattr(abi, "fetch", lambda url: FakeResponse())

    assert abi.fetch_permit2_abi(None) is None


def test_fetch_abi_non_object_body(monkeypatch):
    class FakeResponse:
        def json(self):
            return ["unexpected"]

    monkeypatch.setattr(abi, "fetch", lambda url: FakeResponse())

    assert abi.fetch_permit2_abi(None) is None
    assert abi.fetch_abi_from_explorer("0x01", "https://explorer") is None
