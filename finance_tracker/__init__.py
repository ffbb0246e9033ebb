"""
finance_tracker
~~~~~~~~~~~~~~~

Backend services for the small-business finance tracker: expense
categorization with online learning, spreadsheet imports, profit/loss
reports, expense forecasting and the finance assistant.
"""
