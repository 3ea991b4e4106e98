"""Command line interface for ecs-task-deploy."""
