#!/usr/bin/env python3
"""
Conformance Grader CLI

Command-line interface for the database conformance grading harness.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .config import GradingConfig
from .errors import ConfigError, ExpectationsError
from .expectations import load_expectations
from .grading.pipeline import grade
from .grading.query_inspector import check_statement_pattern, primary_key_pattern, read_query_file
from .grading.reporter import format_summary, save_results_csv
from .models import StatementOutcome
from .utils.log import setup_logging


def build_config(args) -> GradingConfig:
    """Environment (and .env) first, then explicit command-line flags."""
    config = GradingConfig.from_env(args.env_file)
    overrides = {
        'server': args.server,
        'port': args.port,
        'user': args.user,
        'password': args.password,
        'driver': args.driver,
        'schema': args.schema,
        'expectations_file': args.expectations,
        'query_file': args.query_file,
        'output_folder': args.output,
        'log_level': args.log_level,
        'log_file': args.log_file,
    }
    # replace() re-runs __post_init__ validation on the overridden values
    return replace(config, **{key: value for key, value in overrides.items() if value is not None})


def run_command(args) -> int:
    """Handle full grading run."""
    config = build_config(args)
    setup_logging(config.log_level, config.log_file)

    report = grade(config)

    print(format_summary(report))
    if config.export_csv:
        out_path = save_results_csv(report, config.output_folder)
        print(f"📂 Results saved to: {out_path}")

    if report.aborted:
        return 2
    return 0 if report.passed else 1


def query_command(args) -> int:
    """Handle query-file inspection only (no database needed)."""
    config = build_config(args)
    setup_logging(config.log_level, config.log_file)

    expectations = load_expectations(config.expectations_file)
    if expectations.alter_table is None:
        print("❌ Expectations define no ALTER TABLE check")
        return 1

    contents = read_query_file(config.query_file)
    if contents is None:
        print(f"❌ Query file not found: {config.query_file}")
        return 1

    table, column = expectations.alter_table
    check = check_statement_pattern(contents, primary_key_pattern(table, column))
    if check.outcome is StatementOutcome.MATCHED:
        print(f"✅ {check.statement}")
        return 0
    if check.outcome is StatementOutcome.WRONG_SHAPE:
        print(f"❌ Expected ALTER TABLE {table} ADD PRIMARY KEY ({column}) but got: {check.statement}")
    else:
        print("❌ No second statement found after the first ';'")
    return 1


def init_command(args) -> int:
    """Create .env file interactively."""
    env_path = Path(args.env_file or ".env")

    print("🚀 Conformance Grader Setup")
    print("=" * 50)

    if env_path.exists():
        overwrite = input("⚠️  .env file already exists. Overwrite? (y/N): ").lower()
        if overwrite != 'y':
            print("Setup cancelled.")
            return 1

    print("\n🗄️  Database Configuration:")
    db_server = input("Database server (default: localhost): ").strip() or "localhost"
    db_port = input("Database port (default: 3306): ").strip() or "3306"
    db_name = input("Schema name (default: from expectations): ").strip()
    db_user = input("Database username (default: root): ").strip() or "root"
    db_password = input("Database password: ").strip()
    db_driver = input("ODBC driver (default: MySQL ODBC 8.0 Unicode Driver): ").strip() \
        or "MySQL ODBC 8.0 Unicode Driver"

    print("\n📝 Inputs:")
    query_file = input("Learner query file (default: queries.sql): ").strip() or "queries.sql"
    expectations_file = input("Expectations JSON (default: bundled assignment): ").strip()

    env_content = f"""# Database Configuration
DB_SERVER={db_server}
DB_PORT={db_port}
DB_NAME={db_name}
DB_USER={db_user}
DB_PASSWORD={db_password}
DB_DRIVER={db_driver}

# Inputs
QUERY_FILE={query_file}
EXPECTATIONS_FILE={expectations_file}
OUTPUT_FOLDER=results/

# Optional Settings
LOG_LEVEL=INFO
LOG_FILE=
"""

    with open(env_path, 'w', encoding='utf-8') as f:
        f.write(env_content)

    print(f"\n✅ Configuration saved to {env_path.absolute()}")
    print("\n🎉 Setup complete! Run: conformance-grader run")
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Database Conformance Grader",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grade the learner database with settings from .env
  conformance-grader run

  # Custom connection and query file
  conformance-grader run -s localhost -u root -p secret -q queries.sql

  # Only check the ALTER statement in the query file
  conformance-grader query -q queries.sql
        """)

    parser.add_argument('--env-file', default=None,
                        help='Path to .env file (default: ./.env)')
    parser.add_argument('--server', '-s', default=None,
                        help='Database server (default: localhost)')
    parser.add_argument('--port', type=int, default=None,
                        help='Database port (default: 3306)')
    parser.add_argument('--user', '-u', default=None,
                        help='Database username (default: root)')
    parser.add_argument('--password', '-p', default=None,
                        help='Database password')
    parser.add_argument('--driver', default=None,
                        help='ODBC driver name')
    parser.add_argument('--schema', '-d', default=None,
                        help='Schema under test (default: from expectations)')
    parser.add_argument('--expectations', '-e', default=None,
                        help='Expectations JSON file (default: bundled assignment)')
    parser.add_argument('--query-file', '-q', default=None,
                        help='Learner SQL file (default: queries.sql)')
    parser.add_argument('--output', '-o', default=None,
                        help='Output folder (default: results/)')
    parser.add_argument('--log-level', default=None,
                        help='Logging level (default: INFO)')
    parser.add_argument('--log-file', default=None,
                        help='Also log to this file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Run all checks against the database')
    run_parser.set_defaults(func=run_command)

    query_parser = subparsers.add_parser('query', help='Check the query file only')
    query_parser.set_defaults(func=query_command)

    init_parser = subparsers.add_parser('init', help='Create a .env file interactively')
    init_parser.set_defaults(func=init_command)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except ExpectationsError as e:
        print(f"❌ Invalid expectations: {e}")
        return 1
    except ConfigError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
