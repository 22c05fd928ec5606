#!/usr/bin/env python3
"""Terminal front end for CookIQ.

Generate recipes without any UI, browse the local history, and export it.

Usage:
    python query.py "egg, spinach, foxglove"
    python query.py --language Hindi --time "Under 30 mins" "paneer, tomato"
    python query.py --staple Eggs --staple Milk "flour"
    python query.py --image images/fridge.jpg            # detect ingredients from a photo
    python query.py --debug "rice, lentils"              # also print the raw JSON
    python query.py --history                            # list saved recipe sets
    python query.py --show <ID>                          # re-display a saved recipe set
    python query.py --delete <ID> | --clear              # prune history
    python query.py --export exports/                    # write cookiq_database_export_<date>.json

Failures are logged with their precise error kind; the user only sees a
generic retry message.
"""

import argparse
import asyncio
import base64
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown

from cookiq.assistant.assistant import CookIQ, initialize_cookiq, open_history_store
from cookiq.models.models import GenerationRequest, RecipeSet, RecipeSource, StoredRecipeSet, as_text_list
from cookiq.storage.history import HistoryStore
from cookiq.utils.config import LANGUAGES, TIME_LIMITS, Config
from cookiq.utils.errors import CookIQError, GenerationError, ImageAnalysisError
from cookiq.utils.logger import logger
from cookiq.utils.pantry import PANTRY_STAPLES, add_staple

console = Console()

GENERATION_FAILED_MESSAGE = "Even for CookIQ, that was a tough one. Try adjusting your ingredients!"
IMAGE_FAILED_MESSAGE = "Image analysis failed. Please type ingredients."

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _source_link(source: RecipeSource) -> str:
    if source.uri and source.title:
        return f"[{source.title}]({source.uri})"
    return str(source.title or source.uri or "(untitled source)")


def render_recipe_set(recipe_set: RecipeSet) -> str:
    """Render a recipe set as Markdown: safety scan first, then each recipe."""
    categorization = recipe_set.analysis.categorization
    lines = ["## Ingredient Intelligence Scan", "", "**Edible:** " + (", ".join(categorization.edible) or "none")]
    for label, bucket in (
        ("Non-food (ignored)", categorization.non_food),
        ("Toxic (excluded)", categorization.toxic),
        ("Wild / unsafe (excluded)", categorization.wild_or_unsafe),
    ):
        items = as_text_list(bucket)
        if items:
            lines.append(f"**{label}:** " + ", ".join(items))
    alerts = as_text_list(recipe_set.analysis.safety_alerts)
    if alerts:
        lines += ["", "### ⚠️ Safety Alerts", _bullets(alerts)]

    for index, recipe in enumerate(recipe_set.recipes, start=1):
        nutrition = recipe.nutrition
        lines += [
            "",
            f"## {index}. {recipe.dish_name}",
            f"*{recipe.dish_type or 'Unspecified'}* | Avg. Time: {recipe.cooking_time or 'n/a'}",
            "",
            f"🔥 Calories: {nutrition.calories} | 🍗 Protein: {nutrition.protein} | "
            f"🍞 Carbs: {nutrition.carbs} | 🥑 Fats: {nutrition.fats}",
            "",
            "### Ingredients",
            _bullets([f"{ing.item}: {ing.amount}" for ing in recipe.ingredients]),
            "",
            "### Steps",
            "\n".join(f"{step_no:02d}. {step}" for step_no, step in enumerate(recipe.steps, start=1)),
        ]

    if recipe_set.sources:
        lines += ["", "### Sources", _bullets([_source_link(s) for s in recipe_set.sources])]
    return "\n".join(lines)


def render_history(entries: list[StoredRecipeSet]) -> str:
    """Render the history list as Markdown, most recent first."""
    if not entries:
        return "*History is empty.*"
    lines = ["## Recipe History", ""]
    for entry in entries:
        saved = datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        dishes = ", ".join(recipe.dish_name for recipe in entry.recipes)
        lines.append(f"- `{entry.id}` ({saved} UTC): {dishes}")
    return "\n".join(lines)


def load_image(image_path: str) -> tuple[str, str]:
    """Read an image file and return (base64 payload, MIME type guessed from extension)."""
    image_file = Path(image_path)
    image_data = base64.b64encode(image_file.read_bytes()).decode("utf-8")
    mime_type = MIME_TYPES.get(image_file.suffix.lower(), "image/jpeg")
    logger.info(f"✓ Loaded image: {image_file.name} ({len(image_data) / 1024:.1f} KB base64)")
    return image_data, mime_type


async def detect_ingredients(app: CookIQ, image_path: str, ingredients: str) -> Optional[str]:
    """Analyze a photo and merge the detected items into the typed ingredients."""
    try:
        image_data, mime_type = load_image(image_path)
        detected = await app.service.analyze_image(image_data, mime_type)
    except (OSError, ImageAnalysisError) as e:
        logger.error(f"Image analysis failed: {e}", extra={"error_kind": getattr(e, "kind", type(e).__name__)})
        console.print(f"[red]✗ {IMAGE_FAILED_MESSAGE}[/red]")
        return None

    console.print(f"[cyan]Detected:[/cyan] {detected or '(nothing)'}")
    for item in (part.strip() for part in detected.split(",")):
        if item:
            ingredients = add_staple(ingredients, item)
    return ingredients


async def cook(app: CookIQ, request: GenerationRequest, debug: bool = False) -> bool:
    """Generate, save and display recipes. Returns False on failure."""
    console.print(f"[dim]Cooking with: {request.ingredients} ({request.language}, {request.time_limit})[/dim]")
    try:
        stored = await app.cook(request)
    except GenerationError as e:
        logger.error(f"Recipe generation failed: {e}", extra={"error_kind": e.kind})
        console.print(f"[red]✗ {GENERATION_FAILED_MESSAGE}[/red]")
        return False

    if debug:
        console.print("[bold cyan]Debug Mode: Raw Recipe Set[/bold cyan]")
        console.print_json(data=stored.to_json_dict())
    console.print(Markdown(render_recipe_set(stored)))
    console.print(f"[dim]Saved to history as {stored.id}[/dim]")
    return True


def is_history_command(args: argparse.Namespace) -> bool:
    return bool(args.history or args.show or args.delete or args.clear or args.export)


def run_history_command(history: HistoryStore, args: argparse.Namespace) -> int:
    if args.clear:
        history.clear_all()
        console.print("[green]✓ History cleared[/green]")
    elif args.delete:
        history.delete_by_id(args.delete)
        console.print(f"[green]✓ Deleted {args.delete}[/green]")
    elif args.show:
        entry = history.get_by_id(args.show)
        if entry is None:
            console.print(f"[yellow]No saved recipe set with id {args.show}[/yellow]")
            return 1
        console.print(Markdown(render_recipe_set(entry)))
    elif args.export:
        path = history.export_json(args.export)
        console.print(f"[green]✓ Exported history to {path}[/green]")
    else:
        console.print(Markdown(render_history(history.list_all())))
    return 0


async def run(args: argparse.Namespace) -> int:
    if is_history_command(args):
        # Local only: no API key, no gateway
        with open_history_store(Config()) as history:
            return run_history_command(history, args)

    app = await initialize_cookiq()
    async with app:
        ingredients = " ".join(args.ingredients)
        for staple in args.staple or []:
            ingredients = add_staple(ingredients, staple)
        if args.image:
            ingredients = await detect_ingredients(app, args.image, ingredients)
            if ingredients is None:
                return 1

        try:
            request = GenerationRequest(
                ingredients=ingredients,
                language=args.language or app.config.DEFAULT_LANGUAGE,
                time_limit=args.time or app.config.DEFAULT_TIME_LIMIT,
            )
        except ValidationError:
            console.print("[yellow]Please enter some ingredients (or pass --image).[/yellow]")
            return 1

        return 0 if await cook(app, request, debug=args.debug) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CookIQ: safe multi-recipe generation from your ingredients.")
    parser.add_argument("ingredients", nargs="*", help="Comma-separated ingredients")
    parser.add_argument("--language", choices=LANGUAGES, help="Recipe language (default from DEFAULT_LANGUAGE)")
    parser.add_argument("--time", choices=TIME_LIMITS, help="Preferred average time (default from DEFAULT_TIME_LIMIT)")
    parser.add_argument("--staple", action="append", choices=PANTRY_STAPLES, help="Quick-add a pantry staple")
    parser.add_argument("--image", help="Photo to detect ingredients from")
    parser.add_argument("--debug", action="store_true", help="Print the raw recipe-set JSON")

    history = parser.add_mutually_exclusive_group()
    history.add_argument("--history", action="store_true", help="List saved recipe sets")
    history.add_argument("--show", metavar="ID", help="Display a saved recipe set")
    history.add_argument("--delete", metavar="ID", help="Delete a saved recipe set")
    history.add_argument("--clear", action="store_true", help="Delete all saved recipe sets")
    history.add_argument("--export", metavar="DIR", help="Export history as dated JSON into DIR")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 0
    except ValueError as e:
        # Configuration problems (e.g. missing OPENROUTER_API_KEY)
        console.print(f"[red]✗ {e}[/red]")
        return 1
    except CookIQError as e:
        logger.error(f"CookIQ failed: {e}", extra={"error_kind": e.kind}, exc_info=True)
        console.print(f"[red]✗ {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
