"""carapace-bridge - provider-driven argument completion for interactive shells.

Runs an external completion provider (carapace by default) for the command
line being edited, decodes its JSON-style output with a built-in codec and
turns the candidates into typed matches the host shell can render.
Provider runs are cooperative asyncio tasks so the shell stays responsive.
"""
