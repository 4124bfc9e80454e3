"""
Main entry point for the Registrar platform.
"""

import json
import logging
import threading
import time
from typing import Any, Dict, Optional

from .core.exceptions import ConfigurationError
from .core.session import SessionContext
from .persistence import DatabaseFactory, EntityStore, SnapshotManager
from .services import (
    CatalogService, ConcurrencyManager, EnrollmentService, ProjectionEngine,
    ResultsService, RosterService
)
from .api.rest_api import RegistrarRestAPI

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'log_level': 'INFO',
    'lock_timeout': 5.0,
    'database_type': 'sqlite',
    'database_config': {'database_path': 'registrar.db'},
    'persist': False,
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Defaults overlaid with the JSON object in ``path``, if given."""
    config = dict(DEFAULT_CONFIG)
    if path:
        try:
            with open(path, 'r') as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration {path}: {str(e)}")
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration {path} must be a JSON object")
        config.update(loaded)
    return config


def configure_logging(level: str = 'INFO') -> None:
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level}")
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


class RegistrarPlatform:
    """Main platform class that wires the store, services and API together."""

    def __init__(self, config: Optional[dict] = None):
        self._config = dict(DEFAULT_CONFIG)
        self._config.update(config or {})
        self._snapshot_manager = None
        self._rest_thread = None
        self._running = False

        self._initialize_platform()

    def _initialize_platform(self):
        lock_timeout = float(self._config.get('lock_timeout', 5.0))
        if lock_timeout <= 0:
            raise ConfigurationError("lock_timeout must be positive")

        self.store = EntityStore()
        self.concurrency_manager = ConcurrencyManager(default_timeout=lock_timeout)

        self.catalog = CatalogService(self.store, self.concurrency_manager)
        self.roster = RosterService(self.store, self.concurrency_manager)
        self.enrollment = EnrollmentService(self.store, self.catalog, self.roster, self.concurrency_manager)
        self.results = ResultsService(self.store, self.catalog, self.roster, self.concurrency_manager)
        self.projections = ProjectionEngine(self.store)
        logger.debug("Services initialized")

        if self._config.get('persist'):
            database = DatabaseFactory.create_database(
                self._config.get('database_type', 'sqlite'),
                **self._config.get('database_config', {})
            )
            self._snapshot_manager = SnapshotManager(database)
            self._snapshot_manager.load(self.store)

        self.rest_api = RegistrarRestAPI(
            self.catalog, self.roster, self.enrollment, self.results, self.projections
        )
        logger.info("Registrar platform initialized")

    @property
    def app(self):
        return self.rest_api.app

    def save(self) -> int:
        """Write the store to the configured database; 0 when persistence is off."""
        if self._snapshot_manager is None:
            return 0
        return self._snapshot_manager.save(self.store)

    def start_rest_server(self, host: str = "0.0.0.0", port: int = 8000):
        """Start the REST server in a background thread."""
        if self._rest_thread is not None:
            print("REST server already running")
            return

        import uvicorn

        def run_server():
            uvicorn.run(
                self.rest_api.app,
                host=host,
                port=port,
                log_level=str(self._config.get('log_level', 'info')).lower()
            )

        self._rest_thread = threading.Thread(target=run_server, daemon=True)
        self._rest_thread.start()
        self._running = True

        print(f"✓ REST server started on {host}:{port}")
        print(f"  - API Docs: http://{host}:{port}/docs")

    def stop_platform(self):
        if not self._running:
            print("Platform not running")
            return

        saved = self.save()
        if self._snapshot_manager is not None:
            print(f"✓ Saved {saved} records")
        self._running = False
        print("✓ Registrar platform stopped")

    def create_sample_data(self):
        """Create sample data for demonstration."""
        print("Creating sample data...")

        courses = [
            ("CS101", "Introduction to Computer Science", 3, "Dr. Smith"),
            ("MATH201", "Linear Algebra", 4, "Dr. Noether"),
            ("HIST110", "World History", 2, "Prof. Braudel"),
        ]
        for code, title, credits, instructor in courses:
            if self.catalog.find_course_by_code(code) is None:
                self.catalog.add_course(code, title, credits, instructor)

        students = [
            ("Jane Doe", "jane@university.edu", "STU001"),
            ("Bob Smith", "bob@university.edu", "STU002"),
        ]
        for name, email, number in students:
            if self.roster.find_student_by_number(number) is None:
                self.roster.add_student(name, email, number)

        print("✓ Sample data created")

    def run_demo(self):
        """Walk one student through registration, grading and drop."""
        print("Running Registrar demonstration...")
        self.create_sample_data()

        admin = SessionContext.admin()
        student = self.roster.find_student_by_number("STU001")
        course = self.catalog.find_course_by_code("CS101")
        session = SessionContext.student(student.student_number)

        print("\n=== Enrollment Demo ===")
        if not self.enrollment.is_registered(student.id, course.id):
            self.enrollment.register(student.id, course.id)
        for enrolled in self.projections.enrolled_courses(session, student.id):
            print(f"  {enrolled.code} {enrolled.title} ({enrolled.credits} credits) since {enrolled.registration_date}")
        print(f"  Total credits: {self.projections.total_credits(session, student.id)}")
        print(f"  Available: {[c.code for c in self.projections.available_courses(session, student.id)]}")

        print("\n=== Results Demo ===")
        self.results.record_result(student.student_number, course.code, "A-")
        for view in self.projections.student_results(session, student.student_number):
            print(f"  {view.course_code} {view.course_name}: {view.grade} ({view.tier.value})")

        self.enrollment.drop(student.id, course.id)
        print(f"\nAfter drop: {len(self.projections.enrolled_courses(admin, student.id))} courses")
        print(f"Enrollment statistics: {self.enrollment.get_statistics()}")

        if self._snapshot_manager is not None:
            print(f"✓ Saved {self.save()} records")
        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Registrar enrollment and records platform")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="REST server host")
    parser.add_argument("--port", type=int, default=8000, help="REST server port")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--config", type=str, help="Configuration file path")

    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.get('log_level', 'INFO'))

    platform = RegistrarPlatform(config)

    try:
        if args.demo:
            platform.run_demo()
        else:
            platform.start_rest_server(args.host, args.port)

            print("\nPlatform is running. Press Ctrl+C to stop.")
            while True:
                time.sleep(1)

    except KeyboardInterrupt:
        print("\nShutting down...")
        platform.stop_platform()


if __name__ == "__main__":
    main()
