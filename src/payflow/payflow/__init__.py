"""PayFlow payroll back office.

Feature modules (attendance, employees, requests, payroll) each carry a
model, a repository interface with its MySQL implementation, a service and a
thin Flask JSON controller. The attendance reconciler and the payroll
calculator are pure and have no storage dependencies.
"""
