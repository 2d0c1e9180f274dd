"""tx command-line interface."""
