import psycopg2


class DatabaseConnector:
    """Context manager class for a database connection"""
    def __init__(self, params):
        self.params = params
        self.conn = None

    def __enter__(self):
        self.conn = psycopg2.connect(**self.params)
        return self.conn

    def __exit__(self, type, value, traceback):
        if self.conn:
            # Anything left uncommitted by a failed step is discarded
            if type is not None and not self.conn.closed:
                self.conn.rollback()
            self.conn.close()
