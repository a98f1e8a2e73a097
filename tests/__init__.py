"""Test package for the scenario quiz.

Core tests exercise the score tracker, scenario controller, content catalog
and results report directly.  UI tests run headlessly using pygame's dummy
video driver to avoid opening real windows.  To run these tests, execute
``pytest`` from the project root.
"""
