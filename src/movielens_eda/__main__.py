from movielens_eda.cli import main

main()
