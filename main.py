import json
import logging
import argparse

import psycopg2

# Import of classes from within the modules
from staffdb import (
    DatabaseConnector,
    SchemaManager,
    DataLoader,
    ReportGenerator,
    SkillWriter,
    PlanInspector,
    StaffDBError,
    FORMATTERS,
    load_config,
    make_maintainer
)
from staffdb.config import STRATEGIES

DEFAULT_DATA = "data/sample_data.json"


def build_parser():
    """Command line interface with one subcommand per operation"""
    parser = argparse.ArgumentParser(description='Staff database with maintained skill counts')
    parser.add_argument('--env', default='.env', help='Path to .env configuration file')
    commands = parser.add_subparsers(dest='command', required=True)

    init = commands.add_parser('init', help='Create schema, load sample data and back-fill counts')
    init.add_argument('--data', default=DEFAULT_DATA, help='Path to JSON data file')

    commands.add_parser('backfill', help='Recompute every applicant skill count')
    commands.add_parser('verify', help='List applicants whose skill count is stale')

    install = commands.add_parser('install-triggers', help='Install database triggers for skill counts')
    install.add_argument('--strategy', choices=STRATEGIES, help='Overrides COUNT_STRATEGY')
    commands.add_parser('drop-triggers', help='Remove skill count triggers')

    add = commands.add_parser('add-skill', help='Record a skill of an applicant')
    add.add_argument('anumber', type=int)
    add.add_argument('sname')
    add.add_argument('slevel', type=int)

    remove = commands.add_parser('remove-skill', help='Remove a skill of an applicant')
    remove.add_argument('anumber', type=int)
    remove.add_argument('sname')

    report = commands.add_parser('report', help='Generate all reports')
    report.add_argument('--format', choices=sorted(FORMATTERS), default='json', help='Output format')
    report.add_argument('--output', help='Output file, printed to stdout when omitted')

    commands.add_parser('explain', help='Show query plans of the index experiments')

    return parser


def make_writer(conn, config, maintainer):
    """
    SkillWriter for the configured enforcement, checked against the triggers
    actually present so that exactly one mechanism recomputes the counts
    """

    with conn.cursor() as cur:
        installed = maintainer.installed_strategy(cur)

    if config.COUNT_ENFORCEMENT == 'trigger':
        if installed is None:
            raise StaffDBError("COUNT_ENFORCEMENT=trigger but no skill count triggers are installed; run install-triggers")
        # Database triggers do the recompute themselves
        return SkillWriter(conn)

    if installed is not None:
        raise StaffDBError(f"{installed}-level skill count triggers are installed under COUNT_ENFORCEMENT=app; run drop-triggers")
    return SkillWriter(conn, maintainer)


def run(args, config, conn):
    """Executes one subcommand on an open connection"""
    maintainer = make_maintainer(getattr(args, 'strategy', None) or config.COUNT_STRATEGY)

    if args.command == 'init':
        # 1. Init Schema
        schema = SchemaManager(conn)
        logging.info("Creating schema...")
        schema.create_schema()
        schema.create_tables()
        logging.info("Schema created.")

        # 2. Load Data
        logging.info("Loading data...")
        DataLoader(conn).load_data(args.data)
        logging.info("Data loaded.")

        # 3. Derived skill counts
        with conn.cursor() as cur:
            maintainer.ensure_column(cur)
            maintainer.backfill(cur)
            if config.COUNT_ENFORCEMENT == 'trigger':
                maintainer.install_triggers(cur)
        conn.commit()

        # 4. Routines, views and indexes
        logging.info("Creating functions, triggers, views and indexes...")
        schema.create_functions()
        schema.create_triggers()
        schema.create_views()
        schema.create_indexes()
        logging.info("Database initialized.")

    elif args.command == 'backfill':
        with conn.cursor() as cur:
            maintainer.backfill(cur)
        conn.commit()

    elif args.command == 'verify':
        with conn.cursor() as cur:
            drift = maintainer.verify(cur)
        conn.rollback()
        if drift:
            return 1
        logging.info("All skill counts are consistent.")

    elif args.command == 'install-triggers':
        if config.COUNT_ENFORCEMENT != 'trigger':
            raise StaffDBError("install-triggers requires COUNT_ENFORCEMENT=trigger; app enforcement already recomputes counts")
        with conn.cursor() as cur:
            maintainer.install_triggers(cur)
        conn.commit()

    elif args.command == 'drop-triggers':
        if config.COUNT_ENFORCEMENT == 'trigger':
            raise StaffDBError("drop-triggers would leave skill counts unmaintained under COUNT_ENFORCEMENT=trigger")
        with conn.cursor() as cur:
            maintainer.drop_triggers(cur)
        conn.commit()
        logging.info("Skill count triggers removed.")

    elif args.command in ('add-skill', 'remove-skill'):
        writer = make_writer(conn, config, maintainer)
        if args.command == 'add-skill':
            writer.add_skills([(args.anumber, args.sname, args.slevel)])
        else:
            writer.remove_skills([(args.anumber, args.sname)])

    elif args.command == 'report':
        logging.info("Generating report...")
        output_data = FORMATTERS[args.format]().format(ReportGenerator(conn).all_reports())
        conn.rollback()
        logging.info("Report generated.")

        if args.output:
            logging.info(f"Saving report to file: {args.output}...")
            with open(args.output, "w", encoding='utf-8') as f:
                f.write(output_data)
        else:
            print(output_data)

    elif args.command == 'explain':
        for name, plan in PlanInspector(conn).run_all().items():
            print(f"\n{name}")
            print("\n".join(plan))

    return 0


def main(argv=None):
    """Main controller of the module brining all classes together"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.env)
    except StaffDBError as config_err:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
        logging.error(f"Configuration error: {config_err}")
        return 1

    # Configure of logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(config.LOG_FILE, mode='a', encoding='utf-8'),
            logging.StreamHandler()
        ]
    )

    try:
        with DatabaseConnector(config.db_params()) as conn:
            return run(args, config, conn)

    except psycopg2.Error as db_err:
        logging.error(f"Database Error: {db_err}")
    except (IOError, json.JSONDecodeError) as file_err:
        logging.error(f"File error: {file_err}")
    except (StaffDBError, ValueError) as err:
        logging.error(f"Error: {err}")

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
