"""
Data pack loader with schema validation.

Loads world geometry, genotypes and run settings from YAML files (or from the
legacy whitespace-delimited text files), validates them against the bundled
JSON schemas, then checks the cross-field rules a schema cannot express.
"""

import yaml
import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import jsonschema

from .data_types import Genotype, WorldConfig, SimulationSettings, DataPack
from .constants import (
    KINGDOM_DIETS,
    WORLD_FILE,
    GENOTYPES_FILE,
    SETTINGS_FILE,
    LEGACY_WORLD_FILE,
    LEGACY_GENOTYPES_FILE,
    LEGACY_SETTINGS_FILE,
)

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Column order of the legacy genotype table
LEGACY_GENOTYPE_COLUMNS = [
    'species', 'kingdom', 'diet',
    'carbon_0', 'carbon_min', 'carbon_max', 'carbon_breed',
    'burn', 'small_meal', 'big_meal', 'mobility', 'spawn_prob',
    'seed_count',
]
LEGACY_STRING_COLUMNS = {'species', 'kingdom', 'diet'}
INTEGER_FIELDS = {'nx', 'ny', 'seed_count', 'print_step', 'max_steps', 'seed'}


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


class ConfigValidationError(DataLoadError):
    """Raised when a data pack parses but violates a semantic rule"""
    pass


def read_pack_file(file_path: Path) -> dict:
    """
    Read one YAML file of a data pack.

    The document must be a non-empty mapping. Parse errors report the line and
    column PyYAML stopped at.
    """
    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise DataLoadError(f"Missing data pack file: {file_path}")
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        raise DataLoadError(f"YAML parse error in {file_path}{where}: {e}")

    if data is None:
        raise DataLoadError(f"Data pack file is empty: {file_path}")
    if not isinstance(data, dict):
        raise DataLoadError(f"Expected a mapping at top level of {file_path}")
    return data


@lru_cache(maxsize=None)
def _schema_validator(schema_path: Path) -> jsonschema.Draft7Validator:
    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")
    return jsonschema.Draft7Validator(schema)


def check_schema(data: dict, section: str, data_path: Path, schema_dir: Path):
    """
    Validate a raw data pack section against <section>.schema.json.

    Every violation is reported, ordered by location, as 'path: message'
    where path is the slash-joined location inside the document
    (e.g. genotypes/2/kingdom).

    Args:
        data: Parsed document
        section: Schema name (world, genotypes or settings)
        data_path: Source file, for the error message
        schema_dir: Directory holding the schemas (a missing schema is skipped)

    Raises:
        DataLoadError: If the document violates the schema
    """
    schema_path = schema_dir / f"{section}.schema.json"
    if not schema_path.exists():
        return

    errors = sorted(_schema_validator(schema_path).iter_errors(data),
                    key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return

    lines = []
    for error in errors:
        location = "/".join(str(p) for p in error.absolute_path) or "<document>"
        lines.append(f"  {location}: {error.message}")
    raise DataLoadError(f"{data_path} does not match the {section} schema "
                        f"({len(errors)} error(s)):\n" + "\n".join(lines))


# ============================================================================
# Dict -> dataclass builders (shared by YAML and legacy formats)
# ============================================================================

def build_world(data: dict, data_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> WorldConfig:
    """Validate raw world data and build WorldConfig"""
    if schema_dir:
        check_schema(data, 'world', data_path, schema_dir)

    world = WorldConfig(
        x_length=float(data['extent']['x_length']),
        y_length=float(data['extent']['y_length']),
        nx=int(data['cells']['nx']),
        ny=int(data['cells']['ny'])
    )
    validate_world(world)
    return world


def build_genotypes(
    data: dict,
    data_path: Path,
    schema_dir: Optional[Path] = SCHEMA_DIR
) -> Tuple[List[Genotype], Dict[str, int]]:
    """
    Validate raw genotype table and build Genotypes with dense ids.

    Returns:
        (genotypes in table order, {species: initial population})
    """
    if schema_dir:
        check_schema(data, 'genotypes', data_path, schema_dir)

    genotypes = []
    populations = {}
    for gid, g_data in enumerate(data['genotypes']):
        genotype = Genotype(
            species=str(g_data['species']),
            kingdom=g_data['kingdom'],
            diet=g_data['diet'],
            carbon_0=float(g_data['carbon_0']),
            carbon_min=float(g_data['carbon_min']),
            carbon_max=float(g_data['carbon_max']),
            carbon_breed=float(g_data['carbon_breed']),
            burn=float(g_data['burn']),
            small_meal=float(g_data['small_meal']),
            big_meal=float(g_data['big_meal']),
            mobility=float(g_data['mobility']),
            spawn_prob=float(g_data['spawn_prob']),
            gid=gid
        )
        if genotype.species in populations:
            raise ConfigValidationError(f"Duplicate species '{genotype.species}' in {data_path}")

        genotypes.append(genotype)
        populations[genotype.species] = int(g_data['seed_count'])

    for genotype in genotypes:
        validate_genotype(genotype)
    for species, count in populations.items():
        if count < 0:
            raise ConfigValidationError(f"Negative seed count for '{species}': {count}")

    return genotypes, populations


def build_settings(data: dict, data_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> SimulationSettings:
    """Validate raw settings and build SimulationSettings"""
    if schema_dir:
        check_schema(data, 'settings', data_path, schema_dir)

    settings = SimulationSettings(
        total_carbon=float(data['total_carbon']),
        print_step=int(data['print_step']),
        max_steps=int(data['max_steps']),
        seed=data.get('seed'),
        output_dir=data.get('output_dir')
    )
    validate_settings(settings)
    return settings


# ============================================================================
# Semantic validation
# ============================================================================

def validate_world(world: WorldConfig):
    """Reject non-positive extents or cell counts"""
    if world.x_length <= 0 or world.y_length <= 0:
        raise ConfigValidationError(
            f"Extent must be positive, got ({world.x_length}, {world.y_length})")
    if world.nx <= 0 or world.ny <= 0:
        raise ConfigValidationError(
            f"Cell counts must be positive, got ({world.nx}, {world.ny})")


def validate_genotype(gen: Genotype):
    """
    Check threshold ordering and kingdom/diet consistency.

    carbon_min <= carbon_0 <= carbon_breed <= carbon_max, small_meal <= big_meal.
    """
    if gen.kingdom not in KINGDOM_DIETS:
        raise ConfigValidationError(f"{gen.species}: unknown kingdom '{gen.kingdom}'")
    if gen.diet not in KINGDOM_DIETS[gen.kingdom]:
        raise ConfigValidationError(
            f"{gen.species}: diet '{gen.diet}' not allowed for kingdom '{gen.kingdom}'")

    if not (gen.carbon_min <= gen.carbon_0 <= gen.carbon_breed <= gen.carbon_max):
        raise ConfigValidationError(
            f"{gen.species}: carbon thresholds out of order "
            f"(min={gen.carbon_min}, 0={gen.carbon_0}, "
            f"breed={gen.carbon_breed}, max={gen.carbon_max})")
    if gen.small_meal > gen.big_meal:
        raise ConfigValidationError(
            f"{gen.species}: small_meal {gen.small_meal} exceeds big_meal {gen.big_meal}")

    if gen.burn < 0 or gen.mobility < 0 or gen.small_meal < 0:
        raise ConfigValidationError(f"{gen.species}: burn, mobility and meal sizes must be non-negative")
    if not 0.0 <= gen.spawn_prob <= 1.0:
        raise ConfigValidationError(f"{gen.species}: spawn_prob {gen.spawn_prob} outside [0, 1]")


def validate_settings(settings: SimulationSettings):
    """Reject non-positive carbon or step counts"""
    if settings.total_carbon <= 0:
        raise ConfigValidationError(f"total_carbon must be positive, got {settings.total_carbon}")
    if settings.print_step <= 0:
        raise ConfigValidationError(f"print_step must be positive, got {settings.print_step}")
    if settings.max_steps <= 0:
        raise ConfigValidationError(f"max_steps must be positive, got {settings.max_steps}")


# ============================================================================
# YAML data pack
# ============================================================================

def load_world(file_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> WorldConfig:
    """Load world geometry from YAML"""
    return build_world(read_pack_file(file_path), file_path, schema_dir)


def load_genotypes(
    file_path: Path,
    schema_dir: Optional[Path] = SCHEMA_DIR
) -> Tuple[List[Genotype], Dict[str, int]]:
    """Load genotype table from YAML"""
    return build_genotypes(read_pack_file(file_path), file_path, schema_dir)


def load_settings(file_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> SimulationSettings:
    """Load run settings from YAML"""
    return build_settings(read_pack_file(file_path), file_path, schema_dir)


def load_all_data(data_root: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> DataPack:
    """Load all simulation data from a data pack directory

    Expects world.yaml, genotypes.yaml and settings.yaml under data_root.
    """
    data_root = Path(data_root)
    if not data_root.exists():
        raise DataLoadError(f"Data directory not found: {data_root}")

    world = load_world(data_root / WORLD_FILE, schema_dir)
    genotypes, populations = load_genotypes(data_root / GENOTYPES_FILE, schema_dir)
    settings = load_settings(data_root / SETTINGS_FILE, schema_dir)

    return DataPack(
        world=world,
        genotypes=genotypes,
        populations=populations,
        settings=settings,
        source=str(data_root)
    )


# ============================================================================
# Legacy text data pack
# ============================================================================

def read_rows(file_path: Path, skip_header: bool) -> List[List[str]]:
    """Read whitespace-delimited rows, skipping blank lines (and the header)"""
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    with open(file_path, 'r') as f:
        lines = f.read().splitlines()

    if skip_header:
        lines = lines[1:]
    return [line.split() for line in lines if line.strip()]


def _to_number(key: str, value: str, file_path: Path):
    try:
        return int(value) if key in INTEGER_FIELDS else float(value)
    except ValueError:
        raise DataLoadError(f"Bad value for {key} in {file_path}: '{value}'")


def parse_legacy_world(file_path: Path) -> dict:
    """
    Parse legacy world file into raw world data.

    Rows after the header: 'extent <x_length> <y_length>' and
    'cells <nx> <ny>'.
    """
    data = {}
    for row in read_rows(file_path, skip_header=True):
        if len(row) < 3:
            raise DataLoadError(f"Malformed row in {file_path}: {' '.join(row)}")
        if row[0] == 'extent':
            data['extent'] = {
                'x_length': _to_number('x_length', row[1], file_path),
                'y_length': _to_number('y_length', row[2], file_path),
            }
        else:
            data['cells'] = {
                'nx': _to_number('nx', row[1], file_path),
                'ny': _to_number('ny', row[2], file_path),
            }
    return data


def parse_legacy_genotypes(file_path: Path) -> dict:
    """Parse legacy thirteen-column genotype table into raw genotype data"""
    genotypes = []
    for row in read_rows(file_path, skip_header=True):
        if len(row) < len(LEGACY_GENOTYPE_COLUMNS):
            raise DataLoadError(
                f"Expected {len(LEGACY_GENOTYPE_COLUMNS)} columns in {file_path}, "
                f"got {len(row)}: {' '.join(row)}")

        record = {}
        for key, value in zip(LEGACY_GENOTYPE_COLUMNS, row):
            record[key] = value if key in LEGACY_STRING_COLUMNS else _to_number(key, value, file_path)
        genotypes.append(record)
    return {'genotypes': genotypes}


def parse_legacy_settings(file_path: Path) -> dict:
    """Parse legacy 'key value' settings rows into raw settings data"""
    data = {}
    for row in read_rows(file_path, skip_header=False):
        if len(row) < 2:
            raise DataLoadError(f"Malformed row in {file_path}: {' '.join(row)}")
        key = row[0]
        if key == 'output_dir':
            data[key] = row[1]
        else:
            data[key] = _to_number(key, row[1], file_path)
    return data


def load_legacy_data(data_root: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> DataPack:
    """Load a data pack stored as world.txt, genotypes.txt and settings.txt"""
    data_root = Path(data_root)
    if not data_root.exists():
        raise DataLoadError(f"Data directory not found: {data_root}")

    world_path = data_root / LEGACY_WORLD_FILE
    genotypes_path = data_root / LEGACY_GENOTYPES_FILE
    settings_path = data_root / LEGACY_SETTINGS_FILE

    world = build_world(parse_legacy_world(world_path), world_path, schema_dir)
    genotypes, populations = build_genotypes(
        parse_legacy_genotypes(genotypes_path), genotypes_path, schema_dir)
    settings = build_settings(parse_legacy_settings(settings_path), settings_path, schema_dir)

    return DataPack(
        world=world,
        genotypes=genotypes,
        populations=populations,
        settings=settings,
        source=str(data_root)
    )
