"""
Tests for installing a host's connection profiles under live interface names.
"""

import stat
from pathlib import Path

import pytest

from nmc.errors import ProfileParseError
from nmc.inventory import NetworkInterfaces
from nmc.keyfile import ConnectionProfile
from nmc.reconciler import copy_connection_files
from nmc.schema import Host, Interface

FIXTURES = Path(__file__).parent / "fixtures"

_ETH0 = """\
[connection]
id=eth0
interface-name=eth0
type=ethernet

[ethernet]
mac-address=00:11:22:33:44:55

[vlan]
parent=eth0
note=eth0.100
"""


@pytest.fixture
def host() -> Host:
    return Host(name="node1", interfaces=[
        Interface(logical_name="eth0", mac_address="00:11:22:33:44:55"),
        Interface(logical_name="eth1", mac_address="00:11:22:33:44:56"),
    ])


@pytest.fixture
def config_dir(tmp_path) -> Path:
    d = tmp_path / "config" / "node1"
    d.mkdir(parents=True)
    (d / "eth0.nmconnection").write_text(_ETH0)
    return tmp_path / "config"


def _pairs(path: Path) -> dict:
    p = ConnectionProfile.load(path)
    return {s: p.items(s) for s in p.sections()}


def test_rename_rewrites_values_and_filename(host, config_dir, tmp_path):
    dest = tmp_path / "dest"
    nics = NetworkInterfaces({"00:11:22:33:44:55": "enp1s0"})
    result = copy_connection_files(host, nics, config_dir, dest)

    assert result.host == "node1"
    assert result.installed == [str(dest / "enp1s0.nmconnection")]
    assert result.renamed == {"eth0": "enp1s0"}
    assert not (dest / "eth0.nmconnection").exists()

    p = ConnectionProfile.load(dest / "enp1s0.nmconnection")
    assert p.get("connection", "id") == "enp1s0"
    assert p.get("connection", "interface-name") == "enp1s0"
    assert p.get("vlan", "parent") == "enp1s0"
    # substring matches are left alone
    assert p.get("vlan", "note") == "eth0.100"
    assert p.get("ethernet", "mac-address") == "00:11:22:33:44:55"


def test_mac_not_present_installs_unchanged(host, config_dir, tmp_path):
    dest = tmp_path / "dest"
    nics = NetworkInterfaces({"00:11:22:33:44:56": "enp2s0"})
    result = copy_connection_files(host, nics, config_dir, dest)

    assert result.installed == [str(dest / "eth0.nmconnection")]
    assert result.renamed == {}
    assert _pairs(dest / "eth0.nmconnection") == _pairs(config_dir / "node1" / "eth0.nmconnection")


def test_same_live_name_installs_unchanged(host, config_dir, tmp_path):
    dest = tmp_path / "dest"
    nics = NetworkInterfaces({"00:11:22:33:44:55": "eth0"})
    result = copy_connection_files(host, nics, config_dir, dest)
    assert result.installed == [str(dest / "eth0.nmconnection")]
    assert result.renamed == {}


def test_mac_lookup_ignores_case(host, config_dir, tmp_path):
    dest = tmp_path / "dest"
    nics = NetworkInterfaces({"00:11:22:33:44:55".upper(): "enp1s0"})
    copy_connection_files(host, nics, config_dir, dest)
    assert (dest / "enp1s0.nmconnection").exists()


def test_undeclared_profile_installed_verbatim(host, config_dir, tmp_path):
    (config_dir / "node1" / "bond0.nmconnection").write_text("[connection]\nid=eth0\n")
    dest = tmp_path / "dest"
    nics = NetworkInterfaces({"00:11:22:33:44:55": "enp1s0"})
    result = copy_connection_files(host, nics, config_dir, dest)

    assert sorted(Path(p).name for p in result.installed) == ["bond0.nmconnection", "enp1s0.nmconnection"]
    # only the profile named after the interface is rewritten
    assert ConnectionProfile.load(dest / "bond0.nmconnection").get("connection", "id") == "eth0"
    assert result.warnings == []


def test_destination_files_owner_only(host, config_dir, tmp_path):
    (config_dir / "node1" / "eth0.nmconnection").chmod(0o644)
    (config_dir / "node1" / "eth1.nmconnection").write_text("[connection]\nid=eth1\n")
    (config_dir / "node1" / "eth1.nmconnection").chmod(0o755)
    dest = tmp_path / "dest"
    result = copy_connection_files(host, NetworkInterfaces({}), config_dir, dest)

    assert len(result.installed) == 2
    for path in result.installed:
        assert stat.S_IMODE(Path(path).stat().st_mode) == 0o600


def test_skips_directory_and_wrong_extension(host, config_dir, tmp_path):
    (config_dir / "node1" / "subdir").mkdir()
    (config_dir / "node1" / "notes.txt").write_text("hello")
    dest = tmp_path / "dest"
    result = copy_connection_files(host, NetworkInterfaces({}), config_dir, dest)

    assert result.installed == [str(dest / "eth0.nmconnection")]
    assert [p.name for p in dest.iterdir()] == ["eth0.nmconnection"]
    assert [w["message"] for w in result.warnings] == [
        "ignoring unexpected file: notes.txt",
        "ignoring unexpected directory: subdir",
    ]
    assert all(w["severity"] == "warning" for w in result.warnings)


def test_fixture_host_dir(tmp_path):
    host = Host(name="node1", interfaces=[
        Interface(logical_name="eth0", mac_address="00:11:22:33:44:55"),
        Interface(logical_name="eth1", mac_address="00:11:22:33:44:56"),
    ])
    nics = NetworkInterfaces({"00:11:22:33:44:55": "eth1", "00:11:22:33:44:56": "eth0"})
    result = copy_connection_files(host, nics, FIXTURES / "config", tmp_path)

    assert result.renamed == {"eth0": "eth1", "eth1": "eth0"}
    assert len(result.warnings) == 2
    swapped = ConnectionProfile.load(tmp_path / "eth1.nmconnection")
    assert swapped.get("connection", "interface-name") == "eth1"
    assert swapped.get("ipv4", "address1") == "192.168.122.10/24"
    other = ConnectionProfile.load(tmp_path / "eth0.nmconnection")
    assert other.get("connection", "uuid") == "0523c0a1-5f5e-5603-bcf2-68155d5d322e"
    assert other.get("connection", "interface-name") == "eth0"


def test_empty_source_dir(tmp_path):
    (tmp_path / "config" / "node1").mkdir(parents=True)
    host = Host(name="node1")
    result = copy_connection_files(host, NetworkInterfaces({}), tmp_path / "config", tmp_path / "dest")
    assert result.installed == []
    assert result.warnings == []


def test_missing_source_dir(host, tmp_path):
    with pytest.raises(FileNotFoundError):
        copy_connection_files(host, NetworkInterfaces({}), tmp_path / "config", tmp_path / "dest")


def test_parse_failure_aborts(host, config_dir, tmp_path):
    (config_dir / "node1" / "a-broken.nmconnection").write_text("no section header\n")
    dest = tmp_path / "dest"
    with pytest.raises(ProfileParseError, match="a-broken.nmconnection"):
        copy_connection_files(host, NetworkInterfaces({}), config_dir, dest)
    assert not (dest / "a-broken.nmconnection").exists()


def test_rename_handles_indented_keys(host, tmp_path):
    src = tmp_path / "config" / "node1"
    src.mkdir(parents=True)
    (src / "eth0.nmconnection").write_text("[connection]\nid=eth0\n  interface-name=eth0\ntype=ethernet\n")
    dest = tmp_path / "dest"
    copy_connection_files(host, NetworkInterfaces({"00:11:22:33:44:55": "enp1s0"}), tmp_path / "config", dest)

    p = ConnectionProfile.load(dest / "enp1s0.nmconnection")
    assert p.items("connection") == [("id", "enp1s0"), ("interface-name", "enp1s0"), ("type", "ethernet")]
    assert "interface-name=enp1s0" in (dest / "enp1s0.nmconnection").read_text()


def test_unrenamed_profile_installed_byte_for_byte(host, tmp_path):
    src = tmp_path / "config" / "node1"
    src.mkdir(parents=True)
    text = "# managed by image build\n[connection]\nid = eth0\n\n[ipv4]\nmethod=auto\n"
    (src / "eth0.nmconnection").write_text(text)
    (src / "bond0.nmconnection").write_text("# undeclared\n[connection]\nid=bond0\n")
    dest = tmp_path / "dest"
    copy_connection_files(host, NetworkInterfaces({}), tmp_path / "config", dest)

    assert (dest / "eth0.nmconnection").read_text() == text
    assert (dest / "bond0.nmconnection").read_bytes() == (src / "bond0.nmconnection").read_bytes()
    assert stat.S_IMODE((dest / "eth0.nmconnection").stat().st_mode) == 0o600


def test_source_untouched_after_rename(host, config_dir, tmp_path):
    source = config_dir / "node1" / "eth0.nmconnection"
    before = source.read_bytes()
    dest = tmp_path / "dest"
    copy_connection_files(host, NetworkInterfaces({"00:11:22:33:44:55": "enp1s0"}), config_dir, dest)

    assert source.read_bytes() == before
    assert (dest / "enp1s0.nmconnection").read_bytes() != before


def test_invalid_utf8_profile_aborts(host, config_dir, tmp_path):
    (config_dir / "node1" / "eth1.nmconnection").write_bytes(b"[connection]\nid=\xff\xfe\n")
    with pytest.raises(ProfileParseError, match="eth1.nmconnection"):
        copy_connection_files(host, NetworkInterfaces({}), config_dir, tmp_path / "dest")
