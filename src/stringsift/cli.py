from pathlib import Path

import orjson
import typer
from rich.console import Console

from stringsift.data.generator import generate_labelled_strings, generate_synthetic_binary
from stringsift.data.loader import load_labelled, write_labelled_jsonl
from stringsift.eval.harness import evaluate_samples
from stringsift.eval.report import append_csv, append_jsonl, summary_to_row
from stringsift.eval.summarize import summarize_log
from stringsift.extracted import ExtractedString, StringType, TranscodingError
from stringsift.inference import classify_bytes, results_to_arrow, results_to_jsonl
from stringsift.log import configure_logging
from stringsift.manifest import load_manifest, sample_manifest, validate_manifest
from stringsift.model import InvalidModelError, StringModel, load_model, save_model
from stringsift.scanner import ScanConfig
from stringsift.training.logistic import LogisticTrainingConfig, train_logistic

app = typer.Typer(help="Separate meaningful strings from gibberish in binary content.")
model_app = typer.Typer(help="Model artifact helpers (manifests, validation, blank tables).")
dataset_app = typer.Typer(help="Dataset helpers (synthetic labelled strings and binaries).")
eval_app = typer.Typer(help="Evaluation harness for string models.")
train_app = typer.Typer(help="Training entrypoints for the string model.")
console = Console()
SUPPORTED_FORMATS = {"json", "jsonl", "arrow"}

app.add_typer(model_app, name="model")
app.add_typer(dataset_app, name="dataset")
app.add_typer(eval_app, name="eval")
app.add_typer(train_app, name="train")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    configure_logging(verbose=verbose)


def _print_json(payload: object) -> None:
    # soft_wrap keeps long lines intact when stdout is piped
    console.print(
        orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode(),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _read_bytes(path: Path) -> bytes:
    if not path.is_file():
        raise typer.BadParameter(f"Input file not found: {path}")
    return path.read_bytes()


def _load_model(path: Path) -> StringModel:
    if not path.is_file():
        raise typer.BadParameter(f"Model file not found: {path}")
    try:
        model = load_model(path)
        model.validate()
    except InvalidModelError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return model


@app.command()
def scan(
    input: Path = typer.Argument(..., help="Binary file to pull strings from."),
    model_path: Path = typer.Option(..., "--model", "-m", help="Model weights (.json/.yaml/.pt)."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write results."
    ),
    format: str = typer.Option(
        "json", "--format", "-f", help="Output format: json | jsonl | arrow."
    ),
    min_length: int = typer.Option(4, "--min-length", help="Minimum run length to report."),
    threshold: float = typer.Option(
        0.5, "--threshold", help="Probability a string must exceed to count as interesting."
    ),
    all_strings: bool = typer.Option(
        False, "--all", help="Report every candidate, not only interesting ones."
    ),
    narrow: bool = typer.Option(True, "--narrow/--no-narrow", help="Scan 8-bit strings."),
    wide: bool = typer.Option(True, "--wide/--no-wide", help="Scan UTF-16-LE strings."),
) -> None:
    """Scan a binary and classify every candidate string."""
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{format}'. Choose from {SUPPORTED_FORMATS}.")
    if fmt != "json" and output is None:
        raise typer.BadParameter(f"Format '{fmt}' needs --output.")
    if min_length < 1:
        raise typer.BadParameter("--min-length must be at least 1.")

    data = _read_bytes(input)
    model = _load_model(model_path)
    if output:
        console.print(f"[bold green]Read[/] {len(data)} bytes from {input}")

    config = ScanConfig(min_length=min_length, narrow=narrow, wide=wide)
    results = classify_bytes(
        data, model, config=config, threshold=threshold, only_interesting=not all_strings
    )

    if fmt == "jsonl" and output:
        results_to_jsonl(results, output, gzip_output=output.suffix == ".gz")
        console.print(f"[bold green]Wrote {len(results)} results[/] to {output}")
    elif fmt == "arrow" and output:
        results_to_arrow(results, output)
        console.print(f"[bold green]Wrote {len(results)} results[/] to {output}")
    else:
        payload = {
            "input": str(input),
            "bytes": len(data),
            "model": {"name": model.name, "version": model.version},
            "threshold": threshold,
            "results": [r.to_mapping() for r in results],
        }
        if output:
            output.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
            console.print(f"[bold green]Wrote {len(results)} results[/] to {output}")
        else:
            _print_json(payload)


@app.command()
def score(
    text: str = typer.Argument(..., help="String to score."),
    model_path: Path = typer.Option(..., "--model", "-m", help="Model weights (.json/.yaml/.pt)."),
    wide: bool = typer.Option(
        False, "--wide", help="Treat the string as UTF-16-LE wide data before scoring."
    ),
) -> None:
    """Score a single string."""
    model = _load_model(model_path)
    try:
        if wide:
            item = ExtractedString.from_wide(text.encode("utf-16-le"), StringType.WIDE_STRING)
        else:
            item = ExtractedString.from_narrow(text.encode("utf-8"), StringType.UTF8)
    except (TranscodingError, UnicodeEncodeError) as exc:
        raise typer.BadParameter(f"Cannot encode input: {exc}") from exc
    proba = item.proba_interesting(model)
    payload = {
        "text": item.text,
        "type": item.type_string,
        "size_in_bytes": item.size_in_bytes,
        "probability": proba,
        "interesting": item.is_interesting(model),
    }
    _print_json(payload)


@model_app.command("validate")
def model_validate(
    manifest: Path = typer.Argument(..., help="Model manifest (json/yaml)."),
) -> None:
    """Check a manifest's model file exists, matches its hash and fits the feature layout."""
    if not manifest.is_file():
        raise typer.BadParameter(f"Manifest not found: {manifest}")
    result = validate_manifest(load_manifest(manifest))
    _print_json(result)
    if result["warnings"]:
        console.print(f"[bold red]Validation warnings:[/] {', '.join(result['warnings'])}")
        raise typer.Exit(code=1)


@model_app.command("manifest-template")
def model_manifest_template(
    output: Path | None = typer.Option(None, "--output", "-o", help="Where to write the template."),
) -> None:
    """Emit a manifest template to edit."""
    if output:
        output.write_bytes(orjson.dumps(sample_manifest(), option=orjson.OPT_INDENT_2))
        console.print(f"[bold green]Wrote manifest template[/] to {output}")
    else:
        _print_json(sample_manifest())


@model_app.command("zeros")
def model_zeros(
    output: Path = typer.Argument(..., help="Path to write an all-zero model (.json)."),
    bias: float = typer.Option(0.0, "--bias", help="Bias term."),
) -> None:
    """Write a blank weight table with the full feature layout."""
    save_model(StringModel.zeros(bias=bias, name="zeros"), output)
    console.print(f"[bold green]Wrote blank model[/] to {output}")


@dataset_app.command("synthetic")
def dataset_synthetic(
    output: Path = typer.Argument(..., help="Path to write labelled samples (.jsonl)."),
    count: int = typer.Option(512, "--count", "-c", help="Number of samples to emit."),
    seed: int = typer.Option(1234, "--seed", help="Seed for reproducible generation."),
) -> None:
    """Generate labelled interesting/gibberish strings."""
    samples = generate_labelled_strings(count=count, seed=seed)
    write_labelled_jsonl(samples, output)
    console.print(f"[bold green]Wrote[/] {len(samples)} samples to {output}")


@dataset_app.command("binary")
def dataset_binary(
    output: Path = typer.Argument(..., help="Path to write the synthetic binary (.bin)."),
    metadata: Path | None = typer.Option(
        None, "--metadata", "-m", help="Optional path to write JSON metadata about strings."
    ),
    count: int = typer.Option(8, "--count", "-c", help="Number of strings to embed."),
    seed: int = typer.Option(1234, "--seed", help="Seed for reproducible generation."),
) -> None:
    """Generate a binary blob with narrow and wide strings at known offsets."""
    data, meta = generate_synthetic_binary(count=count, seed=seed)
    output.write_bytes(data)
    console.print(f"[bold green]Wrote[/] {len(data)} bytes to {output} ({count} strings).")
    if metadata:
        metadata.write_bytes(orjson.dumps(meta, option=orjson.OPT_INDENT_2))
        console.print(f"[bold green]Wrote metadata[/] to {metadata}")


@train_app.command("logistic")
def train_logistic_cli(
    output_dir: Path = typer.Option(
        Path("artifacts/strings"), "--output-dir", "-o", help="Where to store checkpoints/metrics."
    ),
    samples: int = typer.Option(512, "--samples", help="Synthetic samples when no dataset given."),
    epochs: int = typer.Option(20, "--epochs", help="Training epochs."),
    batch_size: int = typer.Option(64, "--batch-size", help="Batch size."),
    learning_rate: float = typer.Option(0.05, "--learning-rate", help="Adam learning rate."),
    weight_decay: float = typer.Option(0.0, "--weight-decay", help="L2 penalty."),
    seed: int = typer.Option(1234, "--seed", help="Seed for data and initialization."),
    device: str = typer.Option("cpu", "--device", help="Torch device, e.g., cpu or cuda."),
    dataset: Path | None = typer.Option(
        None, "--dataset", "-d", help="Labelled CSV/JSONL file or directory instead of synthetic."
    ),
    version: str = typer.Option("1", "--version", help="Version recorded in the model file."),
) -> None:
    """Fit the logistic-regression weight table and export it."""
    if dataset is not None and not dataset.exists():
        raise typer.BadParameter(f"Dataset not found: {dataset}")
    config = LogisticTrainingConfig(
        output_dir=output_dir,
        samples=samples,
        seed=seed,
        epochs=epochs,
        batch_size=batch_size,
        learning_rate=learning_rate,
        weight_decay=weight_decay,
        device=device,
        dataset_path=dataset,
        version=version,
    )
    source = dataset or "synthetic data"
    console.print(f"[yellow]Training string model on {source}.[/]")
    metrics = train_logistic(config)
    console.print(f"[bold green]Saved checkpoint[/] to {metrics['checkpoint']}")
    _print_json(metrics)


@eval_app.command("model")
def eval_model(
    model_path: Path = typer.Option(..., "--model", "-m", help="Model weights to evaluate."),
    input: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Labelled samples to evaluate. If omitted, a synthetic set is generated.",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write evaluation JSON."
    ),
    log_csv: Path | None = typer.Option(
        None, "--log-csv", help="Append summary as a CSV row for trend tracking."
    ),
    log_jsonl: Path | None = typer.Option(
        None, "--log-jsonl", help="Append full payload as JSONL for trend tracking."
    ),
    tag: str | None = typer.Option(None, "--tag", help="Optional tag to mark this run."),
    threshold: float = typer.Option(0.5, "--threshold", help="Decision threshold."),
    count: int = typer.Option(256, "--count", "-c", help="Samples for synthetic eval."),
    seed: int = typer.Option(4321, "--seed", help="Seed for synthetic generation."),
) -> None:
    """Evaluate a model over labelled or synthetic samples."""
    model = _load_model(model_path)
    if input:
        if not input.exists():
            raise typer.BadParameter(f"Input not found: {input}")
        samples = load_labelled(input)
    else:
        samples = generate_labelled_strings(count=count, seed=seed)
    summary = evaluate_samples(samples, model, threshold=threshold)
    payload: dict[str, object] = {
        "source": str(input or "synthetic"),
        "model": {"name": model.name, "version": model.version},
        "evaluation": summary,
        "tag": tag,
    }
    if not input:
        payload["generator"] = {"count": count, "seed": seed}

    if log_csv:
        append_csv(log_csv, summary_to_row(summary, source=str(input or "synthetic"), tag=tag))
        console.print(f"[bold green]Appended CSV log[/] to {log_csv}")
    if log_jsonl:
        append_jsonl(log_jsonl, payload)
        console.print(f"[bold green]Appended JSONL log[/] to {log_jsonl}")

    if output:
        output.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        console.print(f"[bold green]Wrote evaluation report[/] to {output}")
    else:
        _print_json(payload)


@eval_app.command("summarize")
def eval_summarize(
    log: Path = typer.Argument(..., help="CSV or JSONL log file produced by eval."),
) -> None:
    """Summarize log(s) produced by eval logging."""
    summary = summarize_log(log)
    _print_json(summary)


if __name__ == "__main__":
    app()
