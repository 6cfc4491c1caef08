#!/usr/bin/env python3
"""
Category Manager CLI

Drives the category API through the client-side state cache. Every
command makes one mutating call, after a fetch where the duplicate-name
check needs the current list; failures are printed as a single error
line.

Usage:
    python -m client.cli list
    python -m client.cli create "Fruit" -s Apple -s Banana
    python -m client.cli rename <category-id> "Fresh Fruit"
    python -m client.cli set-subcategories <category-id> -s Apple -s Pear
    python -m client.cli delete <category-id> --yes
    python -m client.cli import categories.xlsx
    python -m client.cli regions [north]

    # Against another server
    python -m client.cli --api-url http://api.example.com list
"""

import os
import sys
import logging
from typing import Any, Dict, List

import click
from dotenv import load_dotenv

from client.api_client import DEFAULT_API_URL, ApiError, CategoryApiClient
from client.state import CategoryState

# Load environment variables
load_dotenv()

# Configure logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('CLI_LOG_FILE', 'cli.log')

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.FileHandler(LOG_FILE)]
)

logger = logging.getLogger('category_cli')


def fail(message: str):
    """Print one error line and exit non-zero."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def echo_category(category: Dict[str, Any]):
    click.echo(f"{category['name']}  [{category['id']}]")
    for sub in category.get('subcategories', []):
        click.echo(f"    - {sub['name']}  [{sub['id']}]")


@click.group()
@click.option('--api-url', envvar='API_URL', default=DEFAULT_API_URL, show_default=True,
              help='Category API base URL')
@click.pass_context
def cli(ctx, api_url):
    """Manage product categories through the Category Manager API."""
    ctx.ensure_object(dict)
    if 'state' not in ctx.obj:
        ctx.obj['state'] = CategoryState(CategoryApiClient(api_url))


@cli.command('list')
@click.pass_obj
def list_cmd(obj):
    """List all categories with their subcategories."""
    state: CategoryState = obj['state']

    try:
        categories = state.fetch()
    except ApiError as e:
        fail(e.message)

    if not categories:
        click.echo("No categories yet.")
        return

    for category in categories:
        echo_category(category)
    click.echo(f"\n{len(categories)} categories")


@cli.command('create')
@click.argument('name')
@click.option('--subcategory', '-s', 'subcategories', multiple=True,
              help='Subcategory name (repeatable)')
@click.pass_obj
def create_cmd(obj, name: str, subcategories: List[str]):
    """Create a category."""
    state: CategoryState = obj['state']

    if not name.strip():
        fail("Category name is required")

    try:
        state.fetch()
        if state.name_exists(name):
            fail(f"A category named '{name.strip()}' already exists")

        category = state.create(
            name.strip(),
            [{'name': sub} for sub in subcategories] if subcategories else None
        )
    except ApiError as e:
        fail(e.message)

    click.echo(f"✓ Created category '{category['name']}'")
    echo_category(category)


@cli.command('rename')
@click.argument('category_id')
@click.argument('name')
@click.pass_obj
def rename_cmd(obj, category_id: str, name: str):
    """Rename a category."""
    state: CategoryState = obj['state']

    if not name.strip():
        fail("Category name is required")

    try:
        state.fetch()
        if state.name_exists(name, exclude_id=category_id):
            fail(f"A category named '{name.strip()}' already exists")

        category = state.update(category_id, name=name.strip())
    except ApiError as e:
        fail(e.message)

    click.echo(f"✓ Renamed category to '{category['name']}'")


@cli.command('set-subcategories')
@click.argument('category_id')
@click.option('--subcategory', '-s', 'subcategories', multiple=True,
              help='Subcategory name (repeatable); omit all to clear the list')
@click.pass_obj
def set_subcategories_cmd(obj, category_id: str, subcategories: List[str]):
    """
    Replace a category's subcategory list.

    Subcategories whose name already exists in the category keep their id.
    """
    state: CategoryState = obj['state']

    try:
        state.fetch()
        current = state.find(category_id)
        existing_ids = {}
        for sub in (current or {}).get('subcategories', []):
            existing_ids.setdefault(sub['name'], []).append(sub['id'])

        new_list = []
        for sub_name in subcategories:
            item = {'name': sub_name}
            if existing_ids.get(sub_name):
                item['id'] = existing_ids[sub_name].pop(0)
            new_list.append(item)

        category = state.update(category_id, subcategories=new_list)
    except ApiError as e:
        fail(e.message)

    click.echo(f"✓ Updated subcategories of '{category['name']}'")
    echo_category(category)


@cli.command('delete')
@click.argument('category_id')
@click.confirmation_option(prompt='Delete this category and all its subcategories?')
@click.pass_obj
def delete_cmd(obj, category_id: str):
    """Delete a category and its subcategories."""
    state: CategoryState = obj['state']

    try:
        state.delete(category_id)
    except ApiError as e:
        fail(e.message)

    click.echo(f"✓ Deleted category {category_id}")


@cli.command('import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(obj, file: str):
    """Import categories from an .xlsx workbook (columns: Category, Subcategory)."""
    state: CategoryState = obj['state']

    click.echo(f"📤 Uploading {file}...")

    try:
        imported = state.import_file(file)
    except ApiError as e:
        fail(e.message)

    click.echo(f"✓ Imported {len(imported)} categories")
    for category in imported:
        echo_category(category)


@cli.command('regions')
@click.argument('name', required=False)
@click.pass_obj
def regions_cmd(obj, name: str):
    """List regions, or show the cities of one region."""
    client = obj['state'].client

    try:
        if name:
            regions = [client.get_region(name)]
        else:
            regions = client.list_regions()
    except ApiError as e:
        fail(e.message)

    for region in regions:
        click.echo(f"{region['region']}: {', '.join(region.get('cities', []))}")


if __name__ == '__main__':
    cli()
