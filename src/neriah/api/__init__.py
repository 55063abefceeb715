"""HTTP API for Neriah."""
