from bharatmart.cli import cli


# ========================== Run ==========================
if __name__ == "__main__":
    cli()
