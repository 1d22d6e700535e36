"""The fuego command: scaffolding of entity, controller and service files for a new domain."""