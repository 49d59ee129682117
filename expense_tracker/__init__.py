"""Command line front end for the expense tracker."""
