"""Tests for the hook-generation manifest."""
import json

from chronoflow.config import ChronoFlowConfig, build_default_networks
from chronoflow.contracts import DEFAULT_ADDRESSES, INTERFACES, ContractName
from chronoflow.manifest import build_manifest, write_manifest


class TestBuildManifest:
    def test_declares_three_contracts(self, somnia_config):
        manifest = build_manifest(somnia_config)

        assert manifest["out"] == "generated/wagmi.ts"
        assert manifest["plugins"] == ["react"]
        assert manifest["chainId"] == 50312
        assert [c["name"] for c in manifest["contracts"]] == [
            "StreamNFT",
            "ChronoFlowCore",
            "ChronoFlowMarketplace",
        ]

    def test_addresses_and_abis(self, somnia_config):
        manifest = build_manifest(somnia_config)
        by_name = {c["name"]: c for c in manifest["contracts"]}

        for name in ContractName:
            entry = by_name[name.value]
            assert entry["address"] == DEFAULT_ADDRESSES["somnia_testnet"][name]
            assert entry["abi"] == INTERFACES[name].as_list()

    def test_operator_addresses_win(self, somnia_config, sample_eth_address):
        somnia_config.set_address(ContractName.MARKETPLACE, sample_eth_address)
        manifest = build_manifest(somnia_config)
        assert manifest["contracts"][2]["address"] == sample_eth_address

    def test_network_without_deployment(self):
        config = ChronoFlowConfig(networks=build_default_networks(), network="hardhat")
        manifest = build_manifest(config)
        assert all(c["address"] is None for c in manifest["contracts"])

    def test_custom_out_and_plugins(self, somnia_config):
        manifest = build_manifest(somnia_config, out="web/hooks.ts", plugins=["react", "actions"])
        assert manifest["out"] == "web/hooks.ts"
        assert manifest["plugins"] == ["react", "actions"]


class TestWriteManifest:
    def test_writes_json(self, tmp_path, somnia_config):
        manifest = build_manifest(somnia_config)
        path = write_manifest(tmp_path / "nested" / "wagmi.manifest.json", manifest)

        assert json.loads(path.read_text()) == manifest
