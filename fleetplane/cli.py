"""fleetplane CLI - assigns applications to clusters in a control plane repository."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from fleetplane.config.logging import configure_logging
from fleetplane.config.validator import ValidationError
from fleetplane.controlplane.client import ControlPlaneClient
from fleetplane.orchestrator import FleetOrchestrator
from fleetplane.output.generator import PlanReport, format_operations
from fleetplane.placement.reconciler import InsufficientClustersError, summarize
from fleetplane.placement.strategy import SelectionMode, build_strategy


def _load_error_exit(e: Exception):
    click.echo(f"Error: {e}", err=True)
    for detail in getattr(e, "errors", []):
        click.echo(f"  - {detail}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="fleetplane")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines")
def main(verbose: bool, log_json: bool):
    """fleetplane - declarative assignment of applications to clusters.

    A control plane repository holds Cluster, ApplicationDeployment and
    ApplicationAssignment records as YAML files. 'fleetplane assign'
    converges the assignment records to what each application asks for.
    """
    configure_logging(verbose=verbose, log_json=log_json)


@main.command()
@click.argument("control_plane_repo", type=click.Path(exists=True, file_okay=False))
@click.option("--dry-run", is_flag=True, help="Compute operations without writing them")
@click.option(
    "--strategy", "-s",
    type=click.Choice([m.value for m in SelectionMode], case_sensitive=False),
    default=SelectionMode.RANDOM.value,
    help="How to pick clusters for new assignments",
)
@click.option(
    "--seed", default=None, type=int, envvar="FLEETPLANE_SEED",
    help="For 'random': seed for reproducible cluster selection",
)
@click.option(
    "--keep-going", is_flag=True,
    help="Apply results for satisfiable applications even if others fail",
)
@click.option("--json", "json_output", is_flag=True, help="Print the plan report as JSON")
@click.option(
    "--output", "-o", type=click.Path(),
    help="Save the plan report to a file (.json or .yaml)",
)
def assign(
    control_plane_repo: str,
    dry_run: bool,
    strategy: str,
    seed: Optional[int],
    keep_going: bool,
    json_output: bool,
    output: Optional[str],
):
    """Reconcile application assignments in a control plane repository.

    Deletes assignments for removed applications and for clusters that no
    longer match, scales each application to its desired cluster count,
    and picks new clusters from those not yet hosting the application.

    \b
    Examples:
      # Preview the operations
      fleetplane assign ./control-plane --dry-run

      # Reproducible selection of new clusters
      fleetplane assign ./control-plane --seed 42
    """
    mode = SelectionMode(strategy.lower())
    client = ControlPlaneClient(control_plane_repo)
    orchestrator = FleetOrchestrator(client, select=build_strategy(mode, seed))

    try:
        plan = orchestrator.plan(fail_fast=not keep_going)
    except InsufficientClustersError as e:
        click.echo(f"Error: application '{e.application}': {e}", err=True)
        sys.exit(1)
    except (ValidationError, ValueError, FileNotFoundError) as e:
        _load_error_exit(e)

    if not dry_run:
        try:
            orchestrator.apply(plan)
        except (ValidationError, ValueError, OSError) as e:
            _load_error_exit(e)

    report = PlanReport(plan, control_plane=control_plane_repo, dry_run=dry_run).generate()

    if json_output:
        click.echo(json.dumps(report, indent=2))
    else:
        verb = "Planned" if dry_run else "Applied"
        click.echo(f"{verb} assignment operations ({mode.value} selection):")
        for line in format_operations(plan):
            click.echo(f"  {line}")
        counts = summarize(plan.operations)
        click.echo(
            f"\nProcessed {counts['total']} assignments in {control_plane_repo}: "
            f"{counts['create']} created, {counts['delete']} deleted, {counts['keep']} kept"
        )

    for failure in plan.failures:
        click.echo(f"Error: application '{failure.application}': {failure.error}", err=True)

    if output:
        output_path = Path(output)
        if output_path.suffix in (".yaml", ".yml"):
            output_path.write_text(yaml.safe_dump(report, sort_keys=False))
        else:
            output_path.write_text(json.dumps(report, indent=2))
        if not json_output:
            click.echo(f"\n  Report saved to {output}")

    if not plan.ok:
        sys.exit(1)


@main.command()
@click.argument("control_plane_repo", type=click.Path(exists=True, file_okay=False))
def validate(control_plane_repo: str):
    """Check that every record in a control plane repository is well-formed."""
    client = ControlPlaneClient(control_plane_repo)
    try:
        context, applications = client.load_inventory()
    except (ValidationError, ValueError, FileNotFoundError) as e:
        _load_error_exit(e)

    click.echo(f"Control plane {control_plane_repo} is valid:")
    click.echo(f"  Clusters: {len(context.clusters)}")
    click.echo(f"  Applications: {len(applications)}")
    click.echo(f"  Assignments: {len(context.assignments)}")


@main.command()
@click.argument("control_plane_repo", type=click.Path(exists=True, file_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def show(control_plane_repo: str, json_output: bool):
    """Show which applications are assigned to each cluster."""
    client = ControlPlaneClient(control_plane_repo)
    try:
        context = client.load_context()
    except (ValidationError, ValueError, FileNotFoundError) as e:
        _load_error_exit(e)

    placement = {c.name: [] for c in context.clusters}
    unknown = []
    for a in context.assignments:
        if a.cluster in placement:
            placement[a.cluster].append(a.application)
        else:
            unknown.append(a.name)

    if json_output:
        click.echo(json.dumps({"clusters": placement, "stale": unknown}, indent=2))
        return

    for cluster in context.clusters:
        apps = placement[cluster.name]
        envs = ", ".join(cluster.environments) or "-"
        click.echo(f"{cluster.name} [{envs}]: {', '.join(apps) or '(none)'}")
    if unknown:
        click.echo(f"\nAssignments referencing unknown clusters ({len(unknown)}):")
        for name in unknown:
            click.echo(f"  {name}")


if __name__ == "__main__":
    main()
