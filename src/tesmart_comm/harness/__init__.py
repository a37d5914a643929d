"""Command-line harness for driving a switch by hand."""
