"""Command-line interface for rendering circular maps"""

import argparse
import sys
from pathlib import Path

from rich.console import Console

from . import __version__
from .assembly import SequenceAssembler
from .config import MapOptions, load_config
from .constants import OutputFormat, Theme
from .errors import CircmapError
from .io import load_contig_entries
from .logging_config import DEBUG_CATEGORIES, enable_debug
from .renderer import MapRenderer
from .tracks import expand_tracks

# Progress and errors go to stderr so the map itself can go to stdout
console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog="circmap",
        description="circmap - render circular genome and plasmid maps",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument("--config", "-c", type=str, required=True,
                             help="JSON track configuration")
    source = input_group.add_mutually_exclusive_group()
    source.add_argument("--data", "-d", type=str,
                        help="Annotation file (GenBank, EMBL, GFF, FASTA, ...)")
    source.add_argument("--contig-list", type=str,
                        help="Tab-delimited list of contigs to join into one circle")
    input_group.add_argument("--sequence", type=str, help="Sequence file overriding --data")
    input_group.add_argument("--seqlen", type=int, help="Sequence length when there is no sequence")
    input_group.add_argument("--data-dir", type=str,
                             help="Directory that relative input paths resolve against")

    seq_group = parser.add_argument_group("Sequence Options")
    seq_group.add_argument("--contig-gap-size", type=int,
                           help="Gap inserted between adjacent contigs (bp)")
    seq_group.add_argument("--contig-min-size", type=int, help="Drop contigs shorter than this (bp)")
    seq_group.add_argument("--no-seq", action="store_true", default=None,
                           help="Do not build the concatenated sequence")

    layout_group = parser.add_argument_group("Layout Options")
    layout_group.add_argument("--rotate-degrees", type=float,
                              help="Clockwise rotation of the sequence origin")
    layout_group.add_argument("--pad", type=float, help="Padding around the circle")
    scaled = layout_group.add_mutually_exclusive_group()
    scaled.add_argument("--scaled-segment-list", type=str,
                        help='Segments to rescale, e.g. "2000-3000:5,4000-5000:0.5"')
    scaled.add_argument("--scaled-segment-file", type=str,
                        help="File of fmin-fmax:scale segments, one or more per line")

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("--output", "-o", type=str, help="Output file (default: stdout)")
    output_group.add_argument("--format", "-f", type=str,
                              choices=[f.value for f in OutputFormat],
                              help="Output format (default: from the output file extension)")
    output_group.add_argument("--theme", type=str, choices=[t.value for t in Theme])
    output_group.add_argument("--debug", type=str,
                              help=f"Debug categories: {', '.join(['all', *DEBUG_CATEGORIES])}")
    return parser


def infer_output_format(output: str | None, explicit: str | None) -> OutputFormat | None:
    """Format named on the command line, else from the output extension"""
    if explicit:
        return OutputFormat(explicit)
    if output:
        format_map = {".svg": OutputFormat.SVG, ".html": OutputFormat.HTML, ".htm": OutputFormat.HTML}
        return format_map.get(Path(output).suffix.lower())
    return None


def read_scaled_segment_file(path: str | Path) -> str:
    """Join a segment file's non-blank, non-comment lines into one segment list"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"scaled segment file not found: {path}")
    lines = [line.strip() for line in path.read_text().splitlines()]
    return ",".join(line for line in lines if line and not line.startswith("#"))


def build_options(args, file_options: MapOptions) -> MapOptions:
    """Apply command-line overrides to the configuration file's map options"""
    segments = args.scaled_segment_list
    if args.scaled_segment_file:
        segments = read_scaled_segment_file(args.scaled_segment_file)
    return file_options.merged(
        pad=args.pad,
        rotate_degrees=args.rotate_degrees,
        contig_gap_size=args.contig_gap_size,
        contig_min_size=args.contig_min_size,
        no_seq=args.no_seq,
        scaled_segment_list=segments,
        theme=args.theme,
        output_format=infer_output_format(args.output, args.format),
        data_dir=args.data_dir,
    )


def run(args) -> int:
    """Render one map

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code: 0 for success, 1 for error
    """
    if args.debug:
        enable_debug(args.debug.split(","))
    if args.data is None and args.contig_list is None and args.sequence is None and args.seqlen is None:
        console.print("[red]Error:[/red] one of --data, --contig-list, --sequence or --seqlen is required")
        return 1

    console.print(f"[cyan]Loading configuration:[/cyan] {args.config}")
    records, file_options = load_config(args.config)
    options = build_options(args, file_options)

    entries = load_contig_entries(
        contig_list=args.contig_list,
        data=args.data,
        sequence=args.sequence,
        seqlen=args.seqlen,
        data_dir=options.data_dir,
        min_size=options.contig_min_size,
    )
    assembler = SequenceAssembler(
        gap_size=options.contig_gap_size,
        min_size=options.contig_min_size,
        no_seq=options.no_seq,
    )
    assembly = assembler.assemble(entries)
    console.print(
        f"[cyan]Assembled[/cyan] {assembly.name}: {assembly.seqlen:,} bp in "
        f"{len(assembly.contigs)} contig(s)"
    )

    tracks = expand_tracks(records)
    console.print(f"[cyan]Rendering[/cyan] {len(tracks)} [cyan]track(s)...[/cyan]")
    canvas = MapRenderer(assembly, tracks, options).render()
    document = canvas.to_string()

    if args.output:
        output = Path(args.output)
        output.write_text(document)
        console.print(f"[green]Saved map to:[/green] {output}")
    else:
        sys.stdout.write(document)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the circmap command"""
    args = create_parser().parse_args(argv)
    try:
        return run(args)
    except (CircmapError, ValueError, FileNotFoundError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
