from .entities import Category, Material, Project, Step

__all__ = ["Category", "Material", "Project", "Step"]
