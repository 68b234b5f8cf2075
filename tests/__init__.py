"""NetSweep Test Suite

Test modules:
    test_port_parser  — core/port_parser.py: lists, presets, junk tokens
    test_targets      — core/targets.py range expansion and utils validators
    test_probe        — TCP connect / simulated probers and OS guessing
    test_timing       — pacing table and the progress meter
    test_results      — data model, result store filtering, event helpers
    test_engine       — scan lifecycle: order, pause, abort, validation
    test_runner       — BackgroundScanner driven from a plain thread
    test_reporting    — JSON / HTML / PDF export files
    test_database     — snapshot history repository (SQLite via tmp_path)
    test_dashboard    — Flask JSON API through the test client
    test_layering     — Static import analysis enforcing architectural
                        layering rules (utils / core / database / reporting)

Run all tests:
    pytest tests/ -v
"""
