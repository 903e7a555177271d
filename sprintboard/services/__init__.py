"""Planning services: sprints, backlog, pagination, story points and metrics."""
