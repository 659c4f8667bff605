"""python -m chonkometer"""

from chonkometer.cli import main

if __name__ == "__main__":
    main()
