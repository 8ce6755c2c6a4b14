from .industry import CommonTool, Industry, LegalRequirement, StartupCost

__all__ = ["CommonTool", "Industry", "LegalRequirement", "StartupCost"]
