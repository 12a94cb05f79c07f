#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for HaploPurge.

This module provides the main CLI entry point and all subcommands for
the two-pass purge_dups refinement pipeline.
"""

import sys
import click
from pathlib import Path
import yaml

from .version import __version__
from .errors import HaploPurgeError
from .config import (
    ConfigParser,
    READ_TYPE_PRESETS,
    load_config,
    save_config_template,
    validate_config,
)
from .utils.tools import TOOL_NAMES, check_tools
from .utils.pipeline import PipelineOrchestrator


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose (DEBUG) logging')
@click.option('--quiet', '-q', is_flag=True, help='Only log warnings and errors')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    HaploPurge: two-pass haplotig purging with purge_dups

    Purges haplotypic duplication from a primary assembly, merges the removed
    haplotigs with the alternate assembly, and purges the merged set again.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='haplopurge_config.yaml',
              help='Output configuration file path')
def config_init(output):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating configuration template: {output}")

    try:
        save_config_template(Path(output))
    except OSError as e:
        click.echo(f"✗ Error creating configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Configuration file created: {output}")
    click.echo("\nEdit the input paths, thread count and tool locations, then run:")
    click.echo(f"  haplopurge run --config {output}")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        pipeline_config = load_config(Path(config_file))
    except HaploPurgeError as e:
        click.echo(f"✗ Error validating configuration: {e}", err=True)
        sys.exit(1)

    errors = validate_config(pipeline_config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', 'output_format', type=click.Choice(['yaml', 'summary']),
              default='summary', help='Output format')
def config_show(config_file, output_format):
    """Display configuration settings."""
    try:
        pipeline_config = load_config(Path(config_file))
    except HaploPurgeError as e:
        click.echo(f"✗ Error reading configuration: {e}", err=True)
        sys.exit(1)

    if output_format == 'yaml':
        click.echo(yaml.dump(pipeline_config, default_flow_style=False, sort_keys=False))
        return

    inputs = pipeline_config['input']
    alignment = pipeline_config['alignment']
    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)
    click.echo("\nInputs:")
    click.echo(f"  Primary:   {inputs.get('primary')}")
    click.echo(f"  Alternate: {inputs.get('alternate')}")
    click.echo(f"  Reads:     {inputs.get('reads')}")
    click.echo("\nHardware:")
    click.echo(f"  Threads: {pipeline_config['hardware']['threads'] or 'auto-detect'}")
    click.echo("\nAlignment:")
    click.echo(f"  Read preset: {alignment['read_preset']}")
    click.echo(f"  Self preset: {alignment['self_preset']} {' '.join(alignment['self_flags'])}")
    click.echo("\nTools:")
    click.echo(f"  bin_dir: {pipeline_config['tools']['bin_dir'] or '(PATH)'}")
    click.echo("\nOutput:")
    click.echo(f"  Working directory: {pipeline_config['output']['work_dir']}")


# ============================================================================
# Tool Check
# ============================================================================

@main.command('check-tools')
@click.option('--bin-dir', type=click.Path(file_okay=False),
              help='Directory holding the purge_dups binaries')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
def check_tools_cmd(bin_dir, config_file):
    """Check that every external tool can be found."""
    try:
        parser = ConfigParser(config_file)
    except HaploPurgeError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    parser.merge_cli_overrides({'tools.bin_dir': bin_dir})
    found = check_tools(parser.get('tools'))

    missing = []
    for name in TOOL_NAMES:
        path = found[name]
        if path:
            click.echo(f"  ✓ {name:<11} {path}")
        else:
            click.echo(f"  ✗ {name:<11} not found")
            missing.append(name)

    if missing:
        click.echo(f"\n✗ Missing tool(s): {', '.join(missing)}", err=True)
        sys.exit(1)

    click.echo("\n✓ All tools available")


# ============================================================================
# Pipeline Command
# ============================================================================

@main.command()
@click.option('--primary', '-p', type=click.Path(dir_okay=False),
              help='Primary assembly (FASTA)')
@click.option('--alternate', '-a', type=click.Path(dir_okay=False),
              help='Alternate assembly (FASTA), merged with pass-one haplotigs')
@click.option('--reads', '-r', type=click.Path(dir_okay=False),
              help='Long reads (FASTA/FASTQ, optionally gzipped)')
@click.option('--threads', '-t', type=click.IntRange(min=1), default=None,
              help='Number of threads (default: auto-detect)')
@click.option('--work-dir', '-o', type=click.Path(file_okay=False),
              help='Working directory for all intermediate and final files')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.option('--bin-dir', type=click.Path(file_okay=False),
              help='Directory holding the purge_dups binaries (searched before PATH)')
@click.option('--read-type', type=click.Choice(sorted(READ_TYPE_PRESETS)),
              help='Read technology; selects the minimap2 preset for read mapping')
@click.option('--read-preset', help='Explicit minimap2 -x preset for read mapping (overrides --read-type)')
@click.option('--resume/--no-resume', default=None,
              help='Skip steps completed by a previous run in the same working directory')
@click.option('--verify-outputs/--no-verify-outputs', default=None,
              help='Fail when a step leaves a declared output missing or empty')
@click.pass_context
def run(ctx, primary, alternate, reads, threads, work_dir, config_file, bin_dir,
        read_type, read_preset, resume, verify_outputs):
    """
    Run the two-pass purging pipeline.

    Examples:
        haplopurge run -p primary.fa -a alternate.fa -r reads.fasta -t 36 -o purge_run/

        haplopurge run --config haplopurge_config.yaml --resume
    """
    verbose = ctx.obj.get('VERBOSE', False)
    quiet = ctx.obj.get('QUIET', False)

    # ========================================================================
    # Load and merge configuration
    # ========================================================================
    try:
        parser = ConfigParser(config_file)
    except HaploPurgeError as e:
        click.echo(f"❌ {e}", err=True)
        ctx.exit(1)

    if read_type and not read_preset:
        read_preset = READ_TYPE_PRESETS[read_type]

    log_level = None
    if verbose:
        log_level = 'DEBUG'
    elif quiet:
        log_level = 'WARNING'

    parser.merge_cli_overrides({
        'input.primary': primary,
        'input.alternate': alternate,
        'input.reads': reads,
        'hardware.threads': threads,
        'output.work_dir': work_dir,
        'tools.bin_dir': bin_dir,
        'alignment.read_preset': read_preset,
        'pipeline.resume': resume,
        'pipeline.verify_outputs': verify_outputs,
        'output.logging.level': log_level,
    })
    pipeline_config = parser.to_dict()

    config_errors = validate_config(pipeline_config)
    if config_errors:
        click.echo("❌ Configuration validation failed:", err=True)
        for error in config_errors:
            click.echo(f"  • {error}", err=True)
        ctx.exit(1)

    if not quiet:
        click.echo(f"{'='*60}")
        click.echo(f"HaploPurge v{__version__}")
        click.echo(f"{'='*60}")
        click.echo(f"  Primary:   {pipeline_config['input']['primary']}")
        click.echo(f"  Alternate: {pipeline_config['input']['alternate']}")
        click.echo(f"  Reads:     {pipeline_config['input']['reads']}")
        click.echo(f"  Output:    {pipeline_config['output']['work_dir']}")

    # ========================================================================
    # Run
    # ========================================================================
    try:
        orchestrator = PipelineOrchestrator(pipeline_config)
        result = orchestrator.run()
    except (HaploPurgeError, OSError) as e:
        click.echo(f"\n❌ Pipeline failed: {e}", err=True)
        ctx.exit(1)

    if not quiet:
        click.echo(f"\n✓ Pipeline complete")
        click.echo(f"  Cleaned primary assembly: {result.primary.cleaned}")
        click.echo(f"  Cleaned haplotig set:     {result.merged.cleaned}")
        click.echo(f"  Leftover redundant set:   {result.merged.redundant}")
        for key, stats in result.summary.items():
            click.echo(f"  {key}: {stats['num_sequences']} sequences, {stats['total_length']} bp")
        if result.shared_ids:
            click.echo(f"⚠️  {len(result.shared_ids)} sequence name(s) shared between "
                       f"pass-one haplotigs and the alternate assembly", err=True)


if __name__ == '__main__':
    main()

# HaploPurge v0.1.0
# Any usage is subject to this software's license.
