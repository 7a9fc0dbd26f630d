"""
neurowave CLI - Command-line interface for the wave evaluation runtime.

Commands:
- neurowave info: Show version, calibration defaults and endpoints
- neurowave check: Check environment and validate a configuration file
- neurowave simulate: Feed wave samples to one actor and print telemetry
- neurowave serve: Start the HTTP API server
"""

import argparse
import json
import os
import sys
from typing import Any


def _get_env_port(default: int | None = None) -> int | None:
    """Get port from PORT environment variable with safe parsing."""
    port_str = os.environ.get("PORT")
    if port_str is None:
        return default
    try:
        return int(port_str)
    except ValueError:
        return default


def _load_config(path: str | None) -> Any:
    from neurowave.utils.config_loader import ConfigLoader

    if path:
        return ConfigLoader.load_validated_config(path)
    env_path = os.environ.get("NEUROWAVE_CONFIG_PATH")
    if env_path:
        return ConfigLoader.load_validated_config(env_path)
    return ConfigLoader.load_default_config()


def _parse_bands(text: str) -> list[float]:
    try:
        return [float(part) for part in text.split(",")]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid band list {text!r}: {e}") from e


def _read_samples(path: str) -> list[Any]:
    """Read one band vector per line: a JSON list or {"bands": [...]}."""
    samples: list[Any] = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                value = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_no}: invalid JSON: {e}") from e
            samples.append(value.get("bands") if isinstance(value, dict) else value)
    return samples


def cmd_info(args: argparse.Namespace) -> int:
    """Show version, calibration defaults and endpoints."""
    from neurowave import __version__
    from neurowave.config.calibration import get_calibration_summary

    summary = get_calibration_summary()
    evaluation = summary["evaluation"]

    print("=" * 60)
    print("neurowave - wave evaluation and emotional state runtime")
    print("=" * 60)
    print()
    print(f"Version:     {__version__}")
    print(
        f"Python:      {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    )
    print()

    print("Defaults:")
    print(f"  Bands:                {', '.join(summary['bands'])}")
    print(f"  Sample rate:          {evaluation['sample_rate']:.0f} Hz")
    print(f"  Smoothing tau:        {evaluation['smoothing_tau']} s")
    print(f"  Success threshold:    {evaluation['success_threshold']}")
    print(f"  Overload threshold:   {evaluation['overload_threshold']}")
    print(f"  Fail threshold:       {evaluation['instability_fail_threshold']}")
    print(f"  Recovery rate:        {evaluation['instability_recovery_rate']} /s")
    print()

    print("HTTP Endpoints:")
    print("  /health                      - Health check")
    print("  /health/ready                - Readiness probe")
    print("  /health/metrics              - Prometheus metrics")
    print("  /v1/actors                   - Actor telemetry")
    print("  /v1/actors/{id}/activate     - Activate an actor")
    print("  /v1/sample                   - Submit a wave sample")
    print()

    print("=" * 60)
    print("Run 'neurowave serve' to start the HTTP API server")
    print("Run 'neurowave simulate --bands 0.2,0.2,0.2,0.2,0.2' for an offline run")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Check environment and configuration."""
    print("=" * 60)
    print("neurowave Environment Check")
    print("=" * 60)
    print()

    status: dict[str, Any] = {"checks": {}, "warnings": [], "errors": []}

    print("Core dependencies:")
    for name, module in (
        ("numpy", "numpy"),
        ("pydantic", "pydantic"),
        ("PyYAML", "yaml"),
        ("prometheus-client", "prometheus_client"),
        ("FastAPI", "fastapi"),
        ("uvicorn", "uvicorn"),
    ):
        try:
            __import__(module)
            print(f"  ✓ {name} installed")
            status["checks"][name] = True
        except ImportError:
            print(f"  ✗ {name} NOT installed")
            status["checks"][name] = False
            status["errors"].append(f"{name} not installed")

    print("\nConfiguration:")
    from neurowave.utils.errors import NeuroWaveError

    try:
        config = _load_config(args.config)
    except NeuroWaveError as e:
        print(f"  ✗ {e}")
        status["checks"]["config"] = False
        status["errors"].append(str(e))
    else:
        print(f"  ✓ Configuration valid ({args.config or 'bundled default'})")
        print(f"  ✓ {len(config.profiles)} profile(s)")
        status["checks"]["config"] = True
        status["profiles"] = [p.profile_id for p in config.profiles]
        if not config.profiles:
            status["warnings"].append("No profiles configured")

    print("\n" + "=" * 60)
    error_count = len(status["errors"])
    warning_count = len(status["warnings"])
    if error_count == 0:
        print("✓ All checks passed!")
        if warning_count > 0:
            print(f"  ({warning_count} warnings)")
    else:
        print(f"✗ {error_count} error(s), {warning_count} warning(s)")
        for error in status["errors"]:
            print(f"  Error: {error}")

    if args.verbose:
        print("\nFull status:")
        print(json.dumps(status, indent=2, default=str))

    return 0 if error_count == 0 else 1


def cmd_simulate(args: argparse.Namespace) -> int:
    """Step one actor offline and print its telemetry as JSON.

    Ticks run back to back with the nominal sample interval as ``dt``, so
    a 10 second simulation finishes immediately and is reproducible.
    """
    from neurowave.cognition.obedience import ObedienceLevel
    from neurowave.core.profile import TargetProfile
    from neurowave.core.wave_sample import WaveSample
    from neurowave.runtime.actor import ActorRuntime
    from neurowave.utils.config_loader import ConfigLoader
    from neurowave.utils.errors import NeuroWaveError

    try:
        config = _load_config(args.config)
    except NeuroWaveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    settings = ConfigLoader.build_settings(config)
    profiles = ConfigLoader.build_profiles(config)
    if args.profile:
        profile = profiles.get(args.profile)
        if profile is None:
            print(f"Error: unknown profile {args.profile!r}", file=sys.stderr)
            return 1
    else:
        profile = next(iter(profiles.values()), TargetProfile())

    obedience: ObedienceLevel | None = None
    if args.obedience is not None:
        obedience = ObedienceLevel(args.obedience)
        profile = obedience.adjust_profile(profile)
        settings = obedience.adjust_settings(settings)

    if args.input:
        try:
            samples = _read_samples(args.input)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        samples = [args.bands]
    if not samples:
        print("Error: no samples to feed", file=sys.stderr)
        return 1

    actor = ActorRuntime("simulated", profile, settings)
    if obedience is not None:
        actor.state_machine.obedience_multiplier = obedience.instability_multiplier()

    dt = settings.sample_interval
    transitions: list[dict[str, Any]] = []
    clock = {"t": 0.0}
    actor.state_machine.add_listener(
        lambda old, new: transitions.append(
            {"time": round(clock["t"], 4), "from": old.value, "to": new.value}
        )
    )

    actor.engage(WaveSample(timestamp=0.0, bands=samples[0]))
    ticks = max(1, int(round(args.duration * settings.sample_rate)))
    for i in range(ticks):
        clock["t"] = (i + 1) * dt
        if i < len(samples):
            actor.receive_sample(WaveSample(timestamp=i * dt, bands=samples[i]))
        actor.tick(dt)

    result = {
        "profile_id": profile.profile_id,
        "ticks": ticks,
        "duration": ticks * dt,
        "transitions": transitions,
        "final": actor.telemetry().to_dict(),
    }
    if obedience is not None:
        result["obedience"] = obedience.get_state()
    print(json.dumps(result, indent=2 if args.pretty else None))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API server.

    Host and port fall back to the HOST/PORT environment variables and then
    to the configuration's server section.
    """
    import uvicorn

    from neurowave.api.app import create_app
    from neurowave.utils.errors import NeuroWaveError

    try:
        config = _load_config(args.config)
    except NeuroWaveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    host = args.host or os.environ.get("HOST") or config.server.host
    port = args.port or _get_env_port() or config.server.port

    print("=" * 60)
    print("neurowave HTTP API Server")
    print("=" * 60)
    print(f"Starting server on {host}:{port}")
    print(f"Profiles: {len(config.profiles)}")

    if host == "0.0.0.0":
        print()
        print("⚠️  SECURITY NOTICE: Binding to 0.0.0.0 exposes the server to all")
        print("   network interfaces. For local development, consider using 127.0.0.1.")
    print()

    app = create_app(config, register_profiles=not args.no_register)
    uvicorn.run(app, host=host, port=port, log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    from neurowave import __version__

    parser = argparse.ArgumentParser(
        prog="neurowave",
        description="neurowave - wave evaluation and emotional state runtime",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Info command
    subparsers.add_parser("info", help="Show version, defaults and endpoints")

    # Check command
    check_parser = subparsers.add_parser("check", help="Check environment and configuration")
    check_parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path to configuration file (default: bundled configuration)",
    )
    check_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Simulate command
    simulate_parser = subparsers.add_parser(
        "simulate", help="Feed samples to one actor offline and print telemetry"
    )
    simulate_parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path to configuration file (default: bundled configuration)",
    )
    simulate_parser.add_argument(
        "-p",
        "--profile",
        type=str,
        help="Profile id to simulate (default: first configured profile)",
    )
    source = simulate_parser.add_mutually_exclusive_group()
    source.add_argument(
        "-b",
        "--bands",
        type=_parse_bands,
        default=[0.2, 0.2, 0.2, 0.2, 0.2],
        help="Constant comma-separated band vector (default: 0.2 on every band)",
    )
    source.add_argument(
        "-i",
        "--input",
        type=str,
        help="JSON-lines file with one band vector per tick; the last one is held",
    )
    simulate_parser.add_argument(
        "-d",
        "--duration",
        type=float,
        default=5.0,
        help="Simulated seconds (default: 5)",
    )
    simulate_parser.add_argument(
        "--obedience",
        type=float,
        help="Apply a manual obedience level (0-100) to the profile and settings",
    )
    simulate_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start HTTP API server")
    serve_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: HOST env var or configuration)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port to bind to (default: PORT env var or configuration)",
    )
    serve_parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path to configuration file",
    )
    serve_parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    serve_parser.add_argument(
        "--no-register",
        action="store_true",
        help="Do not register one actor per configured profile",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "info":
        return cmd_info(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "simulate":
        return cmd_simulate(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
