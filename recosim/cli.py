"""Recosim CLI application with Typer."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError

from recosim import __version__
from recosim.app.ports import InteractionType, Product
from recosim.bootstrap import ApplicationContainer, bootstrap_application
from recosim.config import Settings, get_settings, set_settings
from recosim.errors import InvalidArgumentError, NotFoundError, RecosimError
from recosim.sample_data import load_sample_data

app = typer.Typer(
    name="recosim",
    help="Offline product recommendations and customer segmentation",
    add_completion=True,
    no_args_is_help=True,
)
index_app = typer.Typer(help="Similarity index management")
app.add_typer(index_app, name="index")
product_app = typer.Typer(help="Catalog management and similar-product lookups")
app.add_typer(product_app, name="product")
customer_app = typer.Typer(help="Customer profiles and activity")
app.add_typer(customer_app, name="customer")
segment_app = typer.Typer(help="Customer segmentation")
app.add_typer(segment_app, name="segment")
audit_app = typer.Typer(help="Activity ledger")
app.add_typer(audit_app, name="audit")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"Recosim version {__version__}")
        raise typer.Exit()


def _fail(exc: RecosimError | ValidationError) -> NoReturn:
    """Report an error and exit (1 = not found or unavailable, 2 = invalid input)."""
    if isinstance(exc, ValidationError):
        message = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    code = 2 if isinstance(exc, InvalidArgumentError) else 1
    raise typer.Exit(code=code) from exc



def _container(settings: Settings | None = None) -> ApplicationContainer:
    return bootstrap_application(settings=settings)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override data directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log at INFO level"),
    ] = False,
) -> None:
    """Recosim - offline content-similarity recommender."""
    settings = get_settings()
    if data_dir:
        settings = settings.model_copy(update={"data_dir": data_dir})
        settings._resolved_data_dir = None
    set_settings(settings)

    level = logging.INFO if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)


@app.command("seed")
def seed() -> None:
    """Load the sample catalog and customer activity."""
    container = _container()
    counts = load_sample_data(container.catalog_service, container.customer_service)
    typer.secho(
        f"Seeded {counts['products']} products and {counts['customers']} customers",
        fg=typer.colors.GREEN,
    )


@index_app.command("rebuild")
def index_rebuild() -> None:
    """Re-vectorize the catalog and rebuild the similarity index."""
    container = bootstrap_application(build_index=False)
    count = container.catalog_service.rebuild_index()
    typer.secho(
        f"Indexed {count} products (dim={container.index.dimensions})", fg=typer.colors.GREEN
    )


@product_app.command("add")
def product_add(
    product_id: Annotated[str, typer.Argument(help="Product identifier (SKU)")],
    name: Annotated[str, typer.Option("--name", help="Display name")] = "",
    category: Annotated[str, typer.Option("--category", help="Category")] = "",
    price: Annotated[float, typer.Option("--price", min=0.0, help="Unit price")] = 0.0,
    description: Annotated[str, typer.Option("--description", help="Description")] = "",
    tags: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Tag (repeatable)"),
    ] = None,
    popularity: Annotated[
        float, typer.Option("--popularity", help="Popularity score")
    ] = 0.0,
) -> None:
    """Add or edit a product."""
    container = _container()
    try:
        product = Product(
            product_id=product_id,
            name=name,
            category=category,
            price=price,
            description=description,
            tags=tags or [],
            popularity_score=popularity,
        )
    except ValidationError as exc:
        _fail(exc)
    container.catalog_service.add_product(product)
    typer.secho(f"Saved product {product_id}", fg=typer.colors.GREEN)


@product_app.command("show")
def product_show(
    product_id: Annotated[str, typer.Argument(help="Product identifier")],
) -> None:
    """Show a product as JSON."""
    container = _container()
    try:
        product = container.catalog_service.get_product(product_id)
    except NotFoundError as exc:
        _fail(exc)
    typer.echo(product.model_dump_json(indent=2))


@product_app.command("similar")
def product_similar(
    product_id: Annotated[str, typer.Argument(help="Product identifier")],
    top_n: Annotated[int, typer.Option("--top-n", "-n", help="Number of neighbours")] = 5,
) -> None:
    """List the most similar products."""
    container = _container()
    try:
        neighbours = container.catalog_service.similar_products(product_id, top_n)
    except RecosimError as exc:
        _fail(exc)

    if not neighbours:
        typer.secho("No similar products.", fg=typer.colors.YELLOW)
        return
    for rank, neighbour in enumerate(neighbours, 1):
        score = container.index.similarity(product_id, neighbour)
        typer.echo(f"{rank}. {neighbour}  (cosine={score:.3f})")


@customer_app.command("upsert")
def customer_upsert(
    customer_id: Annotated[str, typer.Argument(help="Customer identifier")],
    name: Annotated[str | None, typer.Option("--name")] = None,
    age: Annotated[int | None, typer.Option("--age", min=0)] = None,
    gender: Annotated[str | None, typer.Option("--gender")] = None,
    location: Annotated[str | None, typer.Option("--location")] = None,
) -> None:
    """Create or update a customer profile."""
    container = _container()
    fields = {
        key: value
        for key, value in {"name": name, "age": age, "gender": gender, "location": location}.items()
        if value is not None
    }
    try:
        profile = container.customer_service.upsert_profile(customer_id, **fields)
    except ValidationError as exc:
        _fail(exc)
    typer.echo(profile.model_dump_json(indent=2))


@customer_app.command("interact")
def customer_interact(
    customer_id: Annotated[str, typer.Argument(help="Customer identifier")],
    product_id: Annotated[str, typer.Argument(help="Product identifier")],
    interaction_type: Annotated[
        InteractionType,
        typer.Option("--type", case_sensitive=False, help="Interaction type"),
    ] = InteractionType.VIEW,
    duration: Annotated[int, typer.Option("--duration", min=0, help="Seconds")] = 0,
) -> None:
    """Record an interaction."""
    container = _container()
    try:
        container.customer_service.record_interaction(
            customer_id, product_id, interaction_type, duration=duration
        )
    except ValidationError as exc:
        _fail(exc)
    typer.secho(
        f"Recorded {interaction_type.value} of {product_id} by {customer_id}",
        fg=typer.colors.GREEN,
    )


@customer_app.command("purchase")
def customer_purchase(
    customer_id: Annotated[str, typer.Argument(help="Customer identifier")],
    product_id: Annotated[str, typer.Argument(help="Product identifier")],
    quantity: Annotated[int, typer.Option("--quantity", min=1)] = 1,
    amount: Annotated[float, typer.Option("--amount", min=0.0)] = 0.0,
) -> None:
    """Record a purchase."""
    container = _container()
    try:
        container.customer_service.record_purchase(
            customer_id, product_id, quantity=quantity, amount=amount
        )
    except ValidationError as exc:
        _fail(exc)
    typer.secho(f"Recorded purchase of {product_id} by {customer_id}", fg=typer.colors.GREEN)


@customer_app.command("features")
def customer_features(
    customer_id: Annotated[str, typer.Argument(help="Customer identifier")],
) -> None:
    """Show aggregated behaviour features."""
    container = _container()
    feature = container.customer_service.features(customer_id)
    typer.echo(
        json.dumps(
            {
                "customer_id": feature.customer_id,
                "interaction_count": feature.interaction_count,
                "purchase_count": feature.purchase_count,
                "total_spent": feature.total_spent,
                "active_months": feature.active_months,
            },
            indent=2,
        )
    )


@segment_app.command("run")
def segment_run(
    k: Annotated[
        int | None, typer.Option("--k", "-k", help="Number of segments (default from settings)")
    ] = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Centroid sampling seed")] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Also export assignments as JSONL"),
    ] = None,
) -> None:
    """Re-segment every customer and persist the labels."""
    settings = get_settings()
    if seed is not None:
        settings = settings.model_copy(update={"kmeans_seed": seed})
    container = bootstrap_application(settings=settings, build_index=False)

    try:
        assignments = container.segmentation_service.update_customer_segments(
            k if k is not None else settings.segment_count
        )
    except RecosimError as exc:
        _fail(exc)

    if not assignments:
        typer.secho("No customers to segment.", fg=typer.colors.YELLOW)
        return

    for customer_id, label in assignments.items():
        typer.echo(f"{customer_id}\t{label}")

    report = container.segmentation_engine.last_run
    if report is not None:
        status = "converged" if report.converged else "stopped at iteration cap"
        typer.secho(
            f"{report.customers} customers, {len(report.segment_sizes)} segments, "
            f"{report.iterations} iterations ({status})",
            fg=typer.colors.BLUE,
        )

    if output is not None:
        count = container.segmentation_service.export(assignments, output)
        typer.secho(f"Wrote {count} assignments to {output}", fg=typer.colors.GREEN)


@app.command("recommend")
def recommend(
    customer_id: Annotated[str, typer.Argument(help="Customer identifier")],
    top_n: Annotated[
        int | None, typer.Option("--top-n", "-n", help="Number of recommendations")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Recommend products for a customer."""
    container = _container()
    limit = top_n if top_n is not None else container.settings.default_top_n
    try:
        result = container.recommendation_engine.recommend(customer_id, limit)
    except RecosimError as exc:
        _fail(exc)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "customer_id": customer_id,
                    "strategy": result.strategy.value,
                    "product_ids": result.product_ids,
                },
                indent=2,
            )
        )
        return

    typer.secho(f"Recommendations for {customer_id} ({result.strategy.value}):", fg=typer.colors.BLUE)
    if not result.product_ids:
        typer.echo("  (none)")
    for product_id in result:
        product = container.store.get_product(product_id)
        if product is None:
            typer.echo(f"- {product_id}")
        else:
            typer.echo(f"- {product.name} (${product.price:.2f})")


@audit_app.command("show")
def audit_show(
    operation: Annotated[
        str | None,
        typer.Option("--operation", help="Only index_rebuild or segment_run entries"),
    ] = None,
    last: Annotated[
        int | None, typer.Option("--last", help="Only the most recent N entries")
    ] = None,
) -> None:
    """Print ledger entries as JSON lines."""
    container = bootstrap_application(build_index=False)
    try:
        entries = container.audit_service.entries(operation, last=last)
    except RecosimError as exc:
        _fail(exc)
    for entry in entries:
        typer.echo(entry.model_dump_json())


@audit_app.command("verify")
def audit_verify() -> None:
    """Verify the ledger hash chain."""
    container = bootstrap_application(build_index=False)
    try:
        valid, error = container.audit_service.verify()
    except RecosimError as exc:
        _fail(exc)

    if valid:
        typer.secho("Activity ledger OK", fg=typer.colors.GREEN)
        return
    typer.secho(f"Activity ledger invalid: {error}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
