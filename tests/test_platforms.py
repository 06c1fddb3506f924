import itertools
import subprocess
from dataclasses import asdict

import pytest
from conftest import FakeProbe

from whisperbuild.errors import InvalidBackend, UnsupportedPlatform, ValidationError
from whisperbuild.platforms import (
    ProbeResult,
    ProbeStatus,
    SubprocessProbe,
    Target,
    TargetResolver,
    get_package_name,
    get_platform_id,
)
from whisperbuild.platforms.target import LINUX_BACKENDS, LINUX_LIBCS, VALID_BACKENDS

PRESENT = ProbeResult(status=ProbeStatus.PRESENT)


def _resolver(
    *,
    system: str = "linux",
    machine: str = "x86_64",
    env: dict[str, str] | None = None,
    probe: FakeProbe | None = None,
) -> TargetResolver:
    return TargetResolver(
        probe=probe or FakeProbe(),
        env=env or {},
        system=system,
        machine=machine,
    )


def test_darwin_always_detects_metal_and_apple_libc_without_probing() -> None:
    probe = FakeProbe({"nvidia-smi": PRESENT})
    target = _resolver(system="darwin", machine="arm64", probe=probe).detect_target()

    assert target == Target(os="darwin", arch="arm64", backend="metal", libc="apple")
    assert probe.calls == []


@pytest.mark.parametrize(
    ("responses", "expected"),
    [
        ({"nvidia-smi": PRESENT, "vulkaninfo": PRESENT}, "cuda"),
        ({"vulkaninfo": PRESENT}, "vulkan"),
        ({}, "cpu"),
        ({"nvidia-smi": ProbeResult(status=ProbeStatus.INDETERMINATE)}, "cpu"),
    ],
)
def test_linux_backend_probe_precedence(responses: dict[str, ProbeResult], expected: str) -> None:
    target = _resolver(probe=FakeProbe(responses)).detect_target()

    assert target.backend == expected
    assert target.os == "linux"
    assert target.arch == "x64"


def test_cuda_probe_short_circuits_vulkan_probe() -> None:
    probe = FakeProbe({"nvidia-smi": PRESENT})
    _resolver(probe=probe).detect_target()

    assert ("vulkaninfo",) not in probe.calls


@pytest.mark.parametrize(
    ("ldd", "expected"),
    [
        (ProbeResult(status=ProbeStatus.PRESENT, output="ldd (GNU libc) 2.36"), "gnu"),
        (ProbeResult(status=ProbeStatus.INDETERMINATE, output="musl libc (x86_64)\nVersion 1.2.4"), "musl"),
        (ProbeResult(status=ProbeStatus.PRESENT, output="musl libc"), "musl"),
        (ProbeResult(status=ProbeStatus.ABSENT), "gnu"),
    ],
)
def test_linux_libc_detection_reads_output_on_any_exit(ldd: ProbeResult, expected: str) -> None:
    target = _resolver(probe=FakeProbe({"ldd": ldd})).detect_target()
    assert target.libc == expected


def test_backend_env_override_bypasses_probing() -> None:
    probe = FakeProbe({"nvidia-smi": PRESENT})
    target = _resolver(env={"NODE_WHISPER_CPP_BACKEND": "vulkan"}, probe=probe).detect_target()

    assert target.backend == "vulkan"
    assert ("nvidia-smi",) not in probe.calls
    assert ("vulkaninfo",) not in probe.calls


def test_invalid_backend_env_override_fails() -> None:
    with pytest.raises(InvalidBackend) as excinfo:
        _resolver(env={"NODE_WHISPER_CPP_BACKEND": "rocm"}).detect_target()

    assert excinfo.value.code == "E_INVALID_BACKEND"
    assert excinfo.value.context["backend"] == "rocm"


def test_backend_override_not_available_on_host_os_fails() -> None:
    with pytest.raises(InvalidBackend):
        _resolver(env={"NODE_WHISPER_CPP_BACKEND": "metal"}).detect_target()
    with pytest.raises(InvalidBackend):
        _resolver(system="darwin", machine="arm64").resolve_target("cuda")


@pytest.mark.parametrize(("system", "machine"), [("win32", "x86_64"), ("linux", "ppc64le"), ("freebsd13", "arm64")])
def test_unsupported_host_fails(system: str, machine: str) -> None:
    with pytest.raises(UnsupportedPlatform) as excinfo:
        _resolver(system=system, machine=machine).detect_target()
    assert excinfo.value.code == "E_UNSUPPORTED_PLATFORM"


@pytest.mark.parametrize("machine", ["x86_64", "AMD64", "aarch64", "arm64"])
def test_architecture_aliases_are_normalized(machine: str) -> None:
    target = _resolver(machine=machine).detect_target()
    assert target.arch in {"x64", "arm64"}


def test_detection_under_overrides_never_violates_target_invariants() -> None:
    hosts = [(system, machine) for system in ("darwin", "linux") for machine in ("arm64", "x86_64")]
    for (system, machine), override in itertools.product(hosts, [None, *VALID_BACKENDS]):
        env = {"NODE_WHISPER_CPP_BACKEND": override} if override else {}
        try:
            target = _resolver(system=system, machine=machine, env=env).detect_target()
        except InvalidBackend:
            continue
        if target.os == "darwin":
            assert target.libc == "apple"
            assert target.backend == "metal"
        else:
            assert target.libc in LINUX_LIBCS
            assert target.backend in LINUX_BACKENDS


def test_resolve_target_changes_only_backend() -> None:
    resolver = _resolver(probe=FakeProbe({"nvidia-smi": PRESENT, "ldd": ProbeResult(ProbeStatus.PRESENT, "musl")}))
    detected = resolver.detect_target()
    resolved = resolver.resolve_target("cpu")

    assert resolved.backend == "cpu"
    assert {k: v for k, v in asdict(resolved).items() if k != "backend"} == {
        k: v for k, v in asdict(detected).items() if k != "backend"
    }
    assert resolver.resolve_target() == detected


def test_target_rejects_invariant_violations() -> None:
    with pytest.raises(ValidationError):
        Target(os="darwin", arch="arm64", backend="cpu", libc="apple")
    with pytest.raises(ValidationError):
        Target(os="linux", arch="x64", backend="cpu", libc="apple")
    with pytest.raises(ValidationError):
        Target(os="linux", arch="x64", backend="metal", libc="gnu")


def test_platform_id_appends_libc_only_on_linux() -> None:
    linux = Target(os="linux", arch="x64", backend="cuda", libc="musl")
    darwin = Target(os="darwin", arch="arm64", backend="metal", libc="apple")

    assert get_platform_id(linux) == "x64-linux-cuda-musl"
    assert get_platform_id(darwin) == "arm64-darwin-metal"
    assert get_package_name(linux) == "node-whisper-cpp-x64-linux-cuda-musl"
    assert darwin.package_name == "node-whisper-cpp-arm64-darwin-metal"


def test_platform_id_is_injective_per_os() -> None:
    linux_targets = [
        Target(os="linux", arch=arch, backend=backend, libc=libc)
        for arch in ("arm64", "x64")
        for backend in LINUX_BACKENDS
        for libc in LINUX_LIBCS
    ]
    ids = [get_platform_id(target) for target in linux_targets]
    assert len(set(ids)) == len(linux_targets)

    darwin_ids = {
        get_platform_id(Target(os="darwin", arch=arch, backend="metal", libc="apple"))
        for arch in ("arm64", "x64")
    }
    assert len(darwin_ids) == 2


def test_subprocess_probe_classifies_outcomes(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(*args: object, **kwargs: object) -> object:
        raise FileNotFoundError("nvidia-smi")

    monkeypatch.setattr("whisperbuild.platforms.probe.subprocess.run", missing)
    assert SubprocessProbe().probe(["nvidia-smi"]).status is ProbeStatus.ABSENT

    monkeypatch.setattr(
        "whisperbuild.platforms.probe.subprocess.run",
        lambda *a, **kw: subprocess.CompletedProcess(a[0], 1, stdout="musl libc (x86_64)"),
    )
    result = SubprocessProbe().probe(["ldd", "--version"])
    assert result.status is ProbeStatus.INDETERMINATE
    assert result.present is False
    assert "musl" in result.output

    monkeypatch.setattr(
        "whisperbuild.platforms.probe.subprocess.run",
        lambda *a, **kw: subprocess.CompletedProcess(a[0], 0, stdout="ok"),
    )
    assert SubprocessProbe().probe(["vulkaninfo"]).present is True


def test_subprocess_probe_timeout_is_indeterminate(monkeypatch: pytest.MonkeyPatch) -> None:
    def slow(*args: object, **kwargs: object) -> object:
        raise subprocess.TimeoutExpired(cmd="nvidia-smi", timeout=1.0)

    monkeypatch.setattr("whisperbuild.platforms.probe.subprocess.run", slow)
    assert SubprocessProbe(timeout=1.0).probe(["nvidia-smi"]).status is ProbeStatus.INDETERMINATE


def test_backend_override_skips_backend_probes() -> None:
    probe = FakeProbe({"nvidia-smi": PRESENT, "ldd": ProbeResult(ProbeStatus.PRESENT, "musl libc")})

    target = _resolver(probe=probe).resolve_target("cpu")

    assert target == Target(os="linux", arch="x64", backend="cpu", libc="musl")
    assert probe.calls == [("ldd", "--version")]


def test_backend_override_on_darwin_spawns_nothing() -> None:
    probe = FakeProbe()

    target = _resolver(system="darwin", machine="arm64", probe=probe).resolve_target("metal")

    assert target.backend == "metal"
    assert probe.calls == []
