from pathlib import Path

import pytest

from ccruntime.diag import HostProbe, parse_cpuinfo, parse_os_release
from ccruntime.errors import HostProbeError


def test_parse_os_release_strips_quotes():
    fields = parse_os_release('# comment\nNAME="Ubuntu"\nVERSION_ID=\'22.04\'\n\nbogus line\n')
    assert fields == {"NAME": "Ubuntu", "VERSION_ID": "22.04"}


def test_parse_cpuinfo_first_block_only():
    text = "vendor_id : A\nmodel name : first\n\nvendor_id : B\nmodel name : second\n"
    fields = parse_cpuinfo(text)
    assert fields["vendor_id"] == "A"
    assert fields["model name"] == "first"


def test_probe_reads_fake_host(host):
    assert host.kernel_version() == "4.14.3-1.container"
    assert host.distro() == ("Clear Linux OS", "19520")
    assert host.cpu() == ("GenuineIntel", "Intel(R) Core(TM) i7-6700 CPU @ 3.40GHz")
    host.check_capable()
    assert host.is_capable() is True


def test_distro_falls_back_to_second_file(tmp_path: Path):
    lib = tmp_path / "usr-lib-os-release"
    lib.write_text("NAME=Fedora\n", encoding="utf-8")
    probe = HostProbe(os_release_paths=(tmp_path / "missing", lib))
    assert probe.distro() == ("Fedora", "unknown")


def test_distro_without_any_file(tmp_path: Path):
    probe = HostProbe(os_release_paths=(tmp_path / "a", tmp_path / "b"))
    with pytest.raises(HostProbeError) as exc:
        probe.distro()
    assert exc.value.probe == "distro"


def test_cpu_without_cpuinfo(tmp_path: Path):
    probe = HostProbe(proc_root=tmp_path)
    with pytest.raises(HostProbeError) as exc:
        probe.cpu()
    assert exc.value.probe == "cpu"


def test_empty_kernel_release(host, host_tree: Path):
    (host_tree / "proc" / "sys" / "kernel" / "osrelease").write_text("\n", encoding="utf-8")
    with pytest.raises(HostProbeError):
        host.kernel_version()


def test_check_capable_lists_everything_missing(host, host_tree: Path):
    cpuinfo = host_tree / "proc" / "cpuinfo"
    cpuinfo.write_text("vendor_id : AuthenticAMD\nflags : fpu lm sse4_1 svm\n", encoding="utf-8")
    (host_tree / "sys" / "module" / "kvm_intel").rmdir()

    with pytest.raises(HostProbeError) as exc:
        host.check_capable()
    msg = str(exc.value)
    assert "'vmx'" in msg
    assert "'kvm_intel'" in msg
    assert "'lm'" not in msg
    assert host.is_capable() is False


def test_is_capable_without_cpuinfo(tmp_path: Path):
    assert HostProbe(proc_root=tmp_path, sys_module_root=tmp_path).is_capable() is False


def test_distro_with_non_utf8_os_release(tmp_path: Path):
    p = tmp_path / "os-release"
    p.write_bytes(b'NAME="Caf\xe9 Linux"\nVERSION_ID=1.0\n')
    name, version = HostProbe(os_release_paths=(p,)).distro()
    assert name.startswith("Caf")
    assert name.endswith(" Linux")
    assert version == "1.0"
