# tasks/tests/__init__.py
"""
Task App Test Suite
===================

This package contains unit and integration tests for the tasks application.

Modules:
--------
- test_calendar: Work-week arithmetic, freeze and boost window edges
- test_scoring: Score model properties (urgency, boosts, freeze, clamp)
- test_workflow: Review state machine and its persisted side effects
- test_orchestration: Recalculation pass, dispatch and Celery workers
- test_freeze: Weekly freeze toggle
- test_api: HTTP endpoints, end to end

Running Tests:
--------------
    # Run all task tests
    python manage.py test tasks

    # Run specific test module
    python manage.py test tasks.tests.test_scoring

    # Run with verbose output
    python manage.py test tasks -v 2
"""
