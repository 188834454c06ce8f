"""Campus Portal package.

Feature modules (users, attendance, notes) each carry a model, a repository
protocol with its MongoDB implementation, a service and a thin Flask
controller.
"""
